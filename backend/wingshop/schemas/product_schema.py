from typing import Optional

from pydantic import BaseModel


class ProductOut(BaseModel):
    id: str
    name: str
    desc: str = ""
    bar_class: str = "bg-maroon"
    price: Optional[int] = None
    currency: Optional[str] = None
    price_id: Optional[str] = None
    image: Optional[str] = None
