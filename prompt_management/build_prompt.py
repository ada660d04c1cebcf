# build_prompt.py
from __future__ import annotations

from prompt_management.templates import SYSTEM_PROMPT_BY_MODE, USER_PROMPT_BY_MODE


def build_prompt(input_text: str, mode: str = "pro"):
    """
    Builds (system_prompt, user_prompt) for the rewrite completion.

    mode:
      - "pro": full humanizing rewrite (rhythm, word choice, sentence length)
      - "mini": light-touch edit that keeps most of the original wording
    Unknown modes fall back to "pro".
    """
    key = mode if mode in SYSTEM_PROMPT_BY_MODE else "pro"
    system_prompt = SYSTEM_PROMPT_BY_MODE[key]
    user_prompt = USER_PROMPT_BY_MODE[key].format(text=(input_text or "").strip())
    return system_prompt, user_prompt
