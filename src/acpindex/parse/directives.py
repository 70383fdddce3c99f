"""Default directive text for annotations written without one.

``@acp:lock frozen`` with no ``- directive`` suffix still tells an agent what
to do; these defaults are stored with ``auto_generated`` set.
"""

_LOCK_DIRECTIVES: dict[str | None, str] = {
    "frozen": "MUST NOT modify this code under any circumstances",
    "restricted": "Explain proposed changes and wait for explicit approval",
    "approval-required": "Propose changes and request confirmation before applying",
    "tests-required": "All changes must include corresponding tests",
    "docs-required": "All changes must update documentation",
    "review-required": "Changes require code review before merging",
    "normal": "Safe to modify following project conventions",
    None: "Safe to modify following project conventions",
    "experimental": "Experimental code - changes welcome but may be unstable",
}

_FIXED_DIRECTIVES: dict[str, str] = {
    "hack": "Temporary workaround - check expiry before modifying",
    "deprecated": "Do not use or extend - see replacement annotation",
    "todo": "Pending work item - address before release",
    "fixme": "Known issue requiring fix - prioritize resolution",
    "critical": "Critical section - changes require extra review",
    "perf": "Performance-sensitive code - benchmark any changes",
    "fn": "Function implementation",
    "function": "Function implementation",
    "class": "Class definition",
    "method": "Method implementation",
}


def default_directive(name: str, value: str | None) -> str | None:
    """Directive to use when an annotation has none, or None if there is no default."""
    if name == "lock":
        return _LOCK_DIRECTIVES.get(value)
    if name == "ref":
        return f"Consult {value} before making changes" if value is not None else None
    if name == "purpose":
        return value.strip('"') if value is not None else None
    return _FIXED_DIRECTIVES.get(name)
