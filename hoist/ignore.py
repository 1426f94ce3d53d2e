import re
from collections.abc import Iterable


def glob_to_regex(pattern: str) -> re.Pattern[str]:
    """
    Compiles a hosting-style glob into a regex matched against root-relative
    paths (no leading slash).

    "*" and "?" stay inside one path segment, "**" spans any number of
    segments, "[...]" is a character class ("[!...]" negates) and "{a,b}" is
    a simple, non-nested alternation.
    """
    pattern = pattern.lstrip("/")
    result = []
    i = 0
    in_braces = False
    while i < len(pattern):
        char = pattern[i]
        if char == "*":
            if pattern.startswith("**", i):
                i += 2
                if pattern.startswith("/", i):
                    i += 1
                    result.append("(?:.*/)?")
                else:
                    result.append(".*")
                continue
            result.append("[^/]*")
        elif char == "?":
            result.append("[^/]")
        elif char == "[":
            end = pattern.find("]", i + 1)
            if end == -1:
                result.append(re.escape(char))
            else:
                body = pattern[i + 1 : end]
                if body.startswith("!"):
                    body = "^" + body[1:]
                result.append("[" + body.replace("\\", "\\\\") + "]")
                i = end
        elif char == "{" and not in_braces and "}" in pattern[i:]:
            in_braces = True
            result.append("(?:")
        elif char == "," and in_braces:
            result.append("|")
        elif char == "}" and in_braces:
            in_braces = False
            result.append(")")
        else:
            result.append(re.escape(char))
        i += 1
    return re.compile("".join(result))


class IgnoreRules:
    """
    A set of ignore globs.

    A path is ignored if any pattern matches the path itself or one of its
    parent directories, so "node_modules" or "**/.*" also drop everything
    beneath a matching directory.
    """

    def __init__(self, patterns: Iterable[str] = ()):
        self.patterns = list(patterns)
        self._compiled = [glob_to_regex(pattern) for pattern in self.patterns]

    def __bool__(self):
        return bool(self._compiled)

    def __repr__(self):
        return f"<IgnoreRules {self.patterns!r}>"

    def matches(self, site_path: str) -> bool:
        parts = site_path.lstrip("/").split("/")
        for depth in range(1, len(parts) + 1):
            candidate = "/".join(parts[:depth])
            for regex in self._compiled:
                if regex.fullmatch(candidate):
                    return True
        return False
