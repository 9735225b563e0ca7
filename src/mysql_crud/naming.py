"""Translation between Python class/field names and database names.

``UserID`` becomes ``user_id`` and ``HTMLContent`` becomes ``html_content``.
Every forward translation is remembered in both directions, which is the only
way a database name can be mapped back: there is no general snake_case to
PascalCase rule.

Where acronyms share a prefix the longest one wins, so ``HTTPSProxy`` becomes
``https_proxy`` and ``UIDValue`` becomes ``uid_value``. Schemas named by a
translator that prefers the first listed acronym (``http_s_proxy``) will not
match such class names.
"""

from __future__ import annotations

import threading

ACRONYMS = (
    "API", "ASCII", "CPU", "CSS", "DNS", "EOF", "GUID", "HTML", "HTTP", "HTTPS",
    "ID", "IP", "JSON", "LHS", "QPS", "RAM", "RHS", "RPC", "SLA", "SMTP", "SSH",
    "TLS", "TTL", "UI", "UID", "UUID", "URI", "URL", "UTF8", "VM", "XML", "XSRF",
    "XSS", "PY",
)


class NameTranslator:
    """Memoizing PascalCase <-> snake_case translator.

    Forward and reverse caches share one lock; entries are never removed.
    A snake_case name that translates to itself does not replace an existing
    reverse entry, so ``user_id`` keeps mapping back to ``UserID``.
    """

    def __init__(self, acronyms: tuple[str, ...] = ACRONYMS) -> None:
        # Longest first so HTTPS wins over HTTP and UUID over UID.
        self._acronyms = tuple(sorted(acronyms, key=len, reverse=True))
        self._forward: dict[str, str] = {}
        self._reverse: dict[str, str] = {}
        self._lock = threading.Lock()

    def to_db_name(self, name: str) -> str:
        with self._lock:
            cached = self._forward.get(name)
        if cached is not None:
            return cached
        db_name = self._split(name)
        if not db_name:
            return ""
        with self._lock:
            self._forward[name] = db_name
            if db_name != name or db_name not in self._reverse:
                self._reverse[db_name] = name
        return db_name

    def to_struct_name(self, db_name: str) -> str:
        with self._lock:
            return self._reverse.get(db_name, "")

    def _split(self, name: str) -> str:
        out: list[str] = []
        i = 0
        while i < len(name):
            char = name[i]
            if char.isupper():
                acronym = next(
                    (a for a in self._acronyms if name.startswith(a, i)), None
                )
                token = acronym or char
                out.append("_" + token.lower())
                i += len(token)
                continue
            out.append(char)
            i += 1
        db_name = "".join(out)
        return db_name[1:] if db_name.startswith("_") else db_name


_translator: NameTranslator | None = None
_translator_lock = threading.Lock()


def get_translator() -> NameTranslator:
    """Return the process-wide translator, creating it on first use."""
    global _translator
    if _translator is None:
        with _translator_lock:
            if _translator is None:
                _translator = NameTranslator()
    return _translator


def to_db_name(name: str) -> str:
    return get_translator().to_db_name(name)


def to_struct_name(db_name: str) -> str:
    return get_translator().to_struct_name(db_name)
