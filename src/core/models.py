from __future__ import annotations
from typing import TypedDict, Optional, List, Dict, Any


class CategoryRecord(TypedDict, total=False):
    _id: str
    name: str                 # unique, trimmed
    description: str
    imageUrl: Optional[str]
    createdAt: str            # ISO 8601
    updatedAt: str


class ProductRecord(TypedDict, total=False):
    _id: str
    name: str
    description: str
    price: float
    category: str             # category name, not id
    brand: str
    imageUrl: str
    countInStock: int
    rating: float
    numReviews: int
    featured: bool
    createdAt: str
    updatedAt: str


class UserRecord(TypedDict, total=False):
    _id: str
    name: str
    email: Optional[str]
    password: Optional[str]   # bcrypt hash
    phoneNumber: Optional[str]
    isPhoneVerified: bool
    isVerified: bool
    role: str                 # user | admin
    createdAt: str
    updatedAt: str


class CartItem(TypedDict):
    productId: str
    quantity: int


class CartRecord(TypedDict, total=False):
    _id: str
    userId: str
    items: List[CartItem]
    createdAt: str
    updatedAt: str


class ErrorReport(TypedDict, total=False):
    message: str
    stack: Optional[str]
    context: Dict[str, Any]
    timestamp: str
    url: str
    userId: Optional[str]


Document = Dict[str, Any]
DocumentList = List[Document]
