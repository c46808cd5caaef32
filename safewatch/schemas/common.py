import json
from typing import Annotated, List

from pydantic import BaseModel, BeforeValidator


def _parse_json_list(value):
    """JSON array columns are stored as text; accept either form."""
    if value is None or value == "":
        return []
    if isinstance(value, str):
        try:
            parsed = json.loads(value)
        except ValueError:
            return [value]
        return parsed if isinstance(parsed, list) else [parsed]
    return value


JsonList = Annotated[List[str], BeforeValidator(_parse_json_list)]
JsonRecords = Annotated[List[dict], BeforeValidator(_parse_json_list)]


class MessageResponse(BaseModel):
    success: bool = True
    message: str
