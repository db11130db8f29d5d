"""Keyword-driven assistant replies for the donor dashboard."""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Optional, Tuple

RULES_PATH = Path(__file__).resolve().parent.parent / "data" / "chatbot_rules.json"


@dataclass(frozen=True)
class ChatRule:
    id: str
    keywords: Tuple[str, ...]
    reply: str
    whole_word: bool = False

    def matches(self, text: str) -> bool:
        for keyword in self.keywords:
            if self.whole_word:
                if re.search(rf"\b{re.escape(keyword)}\b", text):
                    return True
            elif keyword in text:
                return True
        return False


@dataclass(frozen=True)
class ChatReply:
    reply: str
    rule_id: Optional[str] = None


@lru_cache(maxsize=1)
def load_rules(path: Path = RULES_PATH) -> Tuple[Tuple[ChatRule, ...], str]:
    with open(path, encoding="utf-8") as handle:
        data = json.load(handle)
    rules = tuple(
        ChatRule(
            id=item["id"],
            keywords=tuple(k.lower() for k in item.get("keywords", [])),
            reply=item["reply"],
            whole_word=bool(item.get("whole_word", False)),
        )
        for item in data.get("rules", [])
    )
    return rules, data.get("fallback", "")


def reply_to(message: str) -> ChatReply:
    """First rule (in file order) whose keywords appear in ``message`` wins."""

    rules, fallback = load_rules()
    text = (message or "").strip().lower()
    if text:
        for rule in rules:
            if rule.matches(text):
                return ChatReply(rule.reply, rule.id)
    return ChatReply(fallback)
