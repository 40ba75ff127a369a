#!/usr/bin/env python3
"""
Relevance filter for the dev-log hook.

Decides whether a user prompt (and optionally the assistant's answer) is
technical enough to be written to the development log. The decision is an
ordered rule table: the first rule whose predicate fires gives the verdict.
"""

import re
from typing import Callable, List, NamedTuple

DEFAULT_MIN_LENGTH = 50

TECHNICAL_KEYWORDS = [
    "implementation", "implement", "bug", "error", "exception", "stack trace",
    "architecture", "refactor", "function", "class", "method", "api",
    "endpoint", "database", "schema", "query", "migration", "algorithm",
    "performance", "optimize", "memory leak", "test", "tests", "unit test",
    "debug", "deploy", "deployment", "build", "compile", "dependency",
    "config", "configuration", "module", "component", "interface",
    "authentication", "security", "regression", "feature", "pull request",
    "commit", "committed", "merge", "branch", "docker", "ci", "debugging",
]

IGNORE_KEYWORDS = [
    "thanks", "thank you", "thx", "hello", "hi", "hey", "ok", "okay",
    "great", "awesome", "cool", "nice", "lol", "good morning",
    "good night", "how are you", "bye", "cheers",
]

ACTION_VERBS = [
    "write", "create", "add", "fix", "debug", "deploy", "update", "remove",
    "delete", "rename", "move", "install", "configure", "run", "build",
    "refactor", "implement", "migrate", "optimize", "document",
]

FILE_EXTENSIONS = [
    "py", "js", "jsx", "ts", "tsx", "go", "rs", "java", "kt", "rb", "php",
    "c", "cpp", "h", "hpp", "cs", "swift", "sql", "sh", "yml", "yaml",
    "json", "toml", "ini", "md", "html", "css", "scss", "vue", "svelte",
]


def _word_pattern(words: List[str], inflected: bool = False) -> re.Pattern:
    """Match any of ``words`` at word boundaries, optionally with a plural or verb ending."""
    alternatives = "|".join(re.escape(w) for w in sorted(words, key=len, reverse=True))
    suffix = "(?:s|es|d|ed|ing)?" if inflected else ""
    return re.compile(rf"\b(?:{alternatives}){suffix}\b", re.IGNORECASE)


TECHNICAL_RE = _word_pattern(TECHNICAL_KEYWORDS, inflected=True)
IGNORE_RE = _word_pattern(IGNORE_KEYWORDS)
ACTION_RE = _word_pattern(ACTION_VERBS, inflected=True)
FILE_RE = re.compile(
    r"\b[\w./-]+\.(?:" + "|".join(FILE_EXTENSIONS) + r")\b", re.IGNORECASE
)
CODE_RE = re.compile(r"```|`[^`\n]+`")


class Texts(NamedTuple):
    """The strings a rule looks at."""
    prompt: str
    response: str
    combined: str


class Rule(NamedTuple):
    name: str
    predicate: Callable[[Texts, int], bool]
    accept: bool


RULES: List[Rule] = [
    Rule("too_short",
         lambda t, min_len: len(t.prompt.strip()) < min_len,
         False),
    Rule("casual_only",
         lambda t, _: bool(IGNORE_RE.search(t.combined)) and not TECHNICAL_RE.search(t.combined),
         False),
    Rule("technical_keyword",
         lambda t, _: bool(TECHNICAL_RE.search(t.combined)),
         True),
    Rule("no_response_file_or_action",
         lambda t, _: not t.response and bool(FILE_RE.search(t.prompt) or ACTION_RE.search(t.prompt)),
         True),
    Rule("response_has_code",
         lambda t, _: bool(t.response) and bool(CODE_RE.search(t.response)),
         True),
    Rule("file_reference",
         lambda t, _: bool(FILE_RE.search(t.combined)),
         True),
]


def _texts(prompt: str, response: str) -> Texts:
    prompt = prompt or ""
    response = response or ""
    return Texts(prompt, response, f"{prompt}\n{response}".lower())


def explain(prompt: str, response: str = "",
            min_length: int = DEFAULT_MIN_LENGTH) -> str:
    """
    Name the rule that decides for this prompt/response pair

    Returns:
        Rule name, or "default" when no rule fires
    """
    texts = _texts(prompt, response)
    for rule in RULES:
        if rule.predicate(texts, min_length):
            return rule.name
    return "default"


def is_relevant(prompt: str, response: str = "",
                min_length: int = DEFAULT_MIN_LENGTH) -> bool:
    """
    Decide whether an exchange is worth logging

    Args:
        prompt: The user's prompt
        response: The assistant's response, empty if not available yet
        min_length: Prompts shorter than this are always rejected

    Returns:
        True if the exchange should be logged
    """
    texts = _texts(prompt, response)
    for rule in RULES:
        if rule.predicate(texts, min_length):
            return rule.accept
    return False
