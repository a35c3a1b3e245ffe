"""Deep merge of environment overrides onto the base controller config."""


def deep_merge(base: dict, override: dict) -> dict:
    """
    Merge ``override`` onto ``base`` without mutating either. Override wins.

    Nested sections merge key by key; lists and scalars are replaced whole.

    Example:
        base = {"refresh": {"interval": "5m", "workers": 4}}
        override = {"refresh": {"interval": "30s"}}
        result = {"refresh": {"interval": "30s", "workers": 4}}
    """
    merged = dict(base)
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            merged[key] = deep_merge(current, value)
        else:
            merged[key] = value
    return merged
