"""Prompts shared by every LiteLLM-backed analysis backend."""

COMMIT_MESSAGE_PROMPT = """You are an expert software engineer writing git commit messages.
Write a commit message for the diff you are given.
- First line: imperative summary of at most 72 characters.
- Then a blank line and a short body explaining what changed and why, if useful.
- Only describe changes actually shown in the diff.
Respond with the commit message only, no surrounding quotes or code fences."""

FILE_CHANGES_PROMPT = """You are a senior engineer reviewing a change to a single file.
Explain in plain language what the diff changes and what effect it has.
Keep it to a short paragraph or a few bullet points.
Mention risky or surprising changes explicitly. Do not restate the diff line by line."""

CONTRIBUTOR_PROMPT = """You summarize a contributor's activity in a git repository.
From the statistics you are given, describe the areas they work on, the size
and rhythm of their contributions and anything notable in their recent commits.
Keep it factual and under 200 words."""

TRUNCATION_MARKER = "\n[... truncated {omitted} characters ...]\n"


def truncate_input(text: str, max_chars: int) -> str:
    """Cut ``text`` down to ``max_chars``, keeping its head and tail."""
    if max_chars <= 0 or len(text) <= max_chars:
        return text

    head = max_chars * 2 // 3
    tail = max_chars - head
    omitted = len(text) - head - tail
    return text[:head] + TRUNCATION_MARKER.format(omitted=omitted) + text[-tail:]
