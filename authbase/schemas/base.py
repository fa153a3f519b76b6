"""
Base schema with UTC datetime serialization.

Provides UTCDatetime type annotation that serializes datetime
objects with Z suffix indicating UTC timezone.
"""

from datetime import datetime
from typing import Annotated

from pydantic import PlainSerializer

# Usage: created_at: UTCDatetime instead of created_at: datetime
UTCDatetime = Annotated[
    datetime,
    PlainSerializer(
        lambda dt: dt.strftime("%Y-%m-%dT%H:%M:%SZ") if dt else None,
        return_type=str,
    ),
]
