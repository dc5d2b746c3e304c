def money(value):
    return float(value) if value is not None else None


def iso(value):
    return value.isoformat() if value is not None else None
