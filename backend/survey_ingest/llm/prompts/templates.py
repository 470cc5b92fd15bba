# survey_ingest/llm/prompts/templates.py

CLEANUP_SYSTEM_V1 = """
You repair text that was machine-extracted from uploaded survey and questionnaire documents.
The text is used to draft survey questions, so wording and numbering matter more than layout.
Reply with the repaired plain text only.
""".strip()


CLEANUP_TIDY_V1 = """
Clean up and format the following text that was extracted from a {{source_kind}} document.

Instructions:
1. Remove garbled text, encoding artifacts and extraction noise.
2. Fix spacing, line breaks and paragraph formatting.
3. Preserve the logical structure (headings, paragraphs, lists, questions).
4. If it contains survey or form questions, keep the question wording and numbering.
5. Remove redundant whitespace but keep the text readable.
6. Keep all meaningful content. Do not summarize or omit information.
7. Return plain text only (no markdown fences, no commentary).

TEXT:
{{content}}
""".strip()


CLEANUP_RECONSTRUCT_V1 = """
CORRUPTED TEXT RECOVERY TASK.
The text below was extracted from a damaged {{source_kind}} file. It contains encoding
errors, binary artifacts and garbled characters mixed with fragments of the real content.

Analysis clues:
- Words may be missing their first letter ("urvey" is likely "Survey", "uestions" is likely "Questions").
- Recognisable keywords such as {{domain_hints}} point at the document topic.
- Numbers like "1.", "2.", "3." suggest numbered sections or questions.
- Text inside parentheses and between BT/ET markers is usually real page text.

Reconstruction rules:
1. Identify every recognisable word or partial word.
2. Rebuild the sections and questions the fragments belong to.
3. Keep numbered sections in order.
4. Do not invent content that has no support in the fragments.
5. Return a clean, readable plain-text document only (no markdown fences, no commentary).

CORRUPTED TEXT:
{{content}}
""".strip()
