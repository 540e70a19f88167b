"""
Browsing history records used for recommendations
"""
from factorybay.domain.base import GraphModel


class ProductView(GraphModel):
    id: str
    user_id: str
    product_id: str
    viewed_at: str
