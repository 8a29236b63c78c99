def unwrap(j):
    """Return the ``data`` payload of an ``{ok, data, error, meta}`` envelope."""
    if is_enveloped(j):
        return j["data"]
    return j


def is_enveloped(j) -> bool:
    return isinstance(j, dict) and "ok" in j and "data" in j and "meta" in j
