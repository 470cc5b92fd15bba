# Manual check against the real provider: needs GEMINI_API_KEY in .env
#   python backend/tests/smoke_llm.py
import asyncio

from survey_ingest.llm.text_service import build_ai_backend

SAMPLE = "Cust0mer  Satisfacti on Survey\n\n1.How satisfied are you wi th our service?\n2. Would you recommend us?"


def main() -> None:
    ai = build_ai_backend()
    if ai is None:
        raise SystemExit("AI backend not configured (set GEMINI_API_KEY)")
    print(asyncio.run(ai.cleanup(SAMPLE, "PDF")))


if __name__ == "__main__":
    main()
