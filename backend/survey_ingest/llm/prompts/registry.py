# survey_ingest/llm/prompts/registry.py

from dataclasses import dataclass

from survey_ingest.llm.prompts import templates


@dataclass(frozen=True)
class PromptTemplate:
    name: str
    version: str
    template: str
    system_instruction: str | None = None

    @property
    def ref(self) -> str:
        return f"{self.name}@{self.version}"

    def render(self, variables: dict) -> str:
        """Substitute `{{var}}` placeholders. Unknown placeholders are left as-is."""
        out = self.template
        for k, v in variables.items():
            out = out.replace("{{" + k + "}}", str(v))
        return out


PROMPTS: dict[tuple[str, str], PromptTemplate] = {
    ("cleanup_tidy", "v1"): PromptTemplate(
        "cleanup_tidy", "v1", templates.CLEANUP_TIDY_V1, templates.CLEANUP_SYSTEM_V1
    ),
    ("cleanup_reconstruct", "v1"): PromptTemplate(
        "cleanup_reconstruct", "v1", templates.CLEANUP_RECONSTRUCT_V1, templates.CLEANUP_SYSTEM_V1
    ),
}


def get_prompt(name: str, version: str) -> PromptTemplate:
    key = (name, version)
    if key not in PROMPTS:
        raise KeyError(f"Unknown prompt: {name}@{version}")
    return PROMPTS[key]
