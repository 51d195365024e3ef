from pydantic import BaseModel

# string form of a bson ObjectId
OBJECT_ID_PATTERN = r"^[0-9a-fA-F]{24}$"


class MessageResponse(BaseModel):
    message: str
