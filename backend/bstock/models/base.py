from __future__ import annotations

import uuid


def new_id() -> str:
    """Primary keys are UUID4 strings; ascending string order is the lock order for variants."""
    return str(uuid.uuid4())
