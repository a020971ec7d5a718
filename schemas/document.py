# app/schemas/document.py
from pydantic import BaseModel


class DocumentRead(BaseModel):
    url: str
    title: str = ""
    description: str = ""
