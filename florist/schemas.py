from pydantic import BaseModel, Field
from typing import Optional, List, Dict, Union
import datetime

# --- Auth Schemas ---
class Token(BaseModel):
    access_token: str
    token_type: str

class TokenData(BaseModel):
    username: Optional[str] = None

class LoginRequest(BaseModel):
    username: Optional[str] = None
    password: Optional[str] = None

class User(BaseModel):
    id: int
    username: str
    role: str

    class Config:
        from_attributes = True

class LoginResponse(Token):
    user: User

# --- Category Schemas ---
class CategoryBase(BaseModel):
    name: str
    description: Optional[str] = ""
    image_url: Optional[str] = None
    display_order: int = 0
    is_active: bool = True

class CategoryCreate(CategoryBase):
    pass

class CategoryUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    image_url: Optional[str] = None
    display_order: Optional[int] = None
    is_active: Optional[bool] = None

class Category(CategoryBase):
    id: int
    name_en: Optional[str] = None
    name_az: Optional[str] = None
    name_ru: Optional[str] = None
    description_en: Optional[str] = None
    description_az: Optional[str] = None
    description_ru: Optional[str] = None
    translation_status: str
    last_translated: Optional[datetime.datetime] = None
    created_at: datetime.datetime

    class Config:
        from_attributes = True

# --- Plant Schemas ---
class PlantBase(BaseModel):
    name: str
    scientific_name: Optional[str] = ""
    description: Optional[str] = ""
    care_instructions: Optional[str] = ""
    price: float = Field(gt=0)
    sale_price: Optional[float] = Field(default=None, gt=0)
    stock_quantity: int = Field(default=0, ge=0)
    status: str = Field(default="available", pattern="^(available|unavailable)$")
    featured: bool = False
    care_level: Optional[str] = None
    light_requirements: Optional[str] = ""
    water_needs: Optional[str] = ""
    pet_friendly: bool = False
    size: Optional[str] = ""
    growth_rate: Optional[str] = ""
    image_url: Optional[str] = None
    gallery_images: List[str] = []

class PlantCreate(PlantBase):
    # A category id, or the name of a category for older clients
    category: Union[int, str]

class PlantUpdate(BaseModel):
    name: Optional[str] = None
    scientific_name: Optional[str] = None
    description: Optional[str] = None
    care_instructions: Optional[str] = None
    category: Optional[Union[int, str]] = None
    price: Optional[float] = Field(default=None, gt=0)
    sale_price: Optional[float] = Field(default=None, gt=0)
    stock_quantity: Optional[int] = Field(default=None, ge=0)
    status: Optional[str] = Field(default=None, pattern="^(available|unavailable)$")
    featured: Optional[bool] = None
    care_level: Optional[str] = None
    light_requirements: Optional[str] = None
    water_needs: Optional[str] = None
    pet_friendly: Optional[bool] = None
    size: Optional[str] = None
    growth_rate: Optional[str] = None
    image_url: Optional[str] = None
    gallery_images: Optional[List[str]] = None

class Plant(PlantBase):
    id: int
    category_id: Optional[int] = None
    category_name: Optional[str] = None
    name_en: Optional[str] = None
    name_az: Optional[str] = None
    name_ru: Optional[str] = None
    description_en: Optional[str] = None
    description_az: Optional[str] = None
    description_ru: Optional[str] = None
    care_instructions_en: Optional[str] = None
    care_instructions_az: Optional[str] = None
    care_instructions_ru: Optional[str] = None
    translation_status: str
    last_translated: Optional[datetime.datetime] = None
    created_at: datetime.datetime
    updated_at: datetime.datetime

    class Config:
        from_attributes = True

# --- Order Schemas ---
class OrderItem(BaseModel):
    plant_id: Optional[int] = None
    name: str
    name_en: Optional[str] = None
    name_az: Optional[str] = None
    name_ru: Optional[str] = None
    quantity: int
    price: float
    image_url: Optional[str] = None

class OrderCreate(BaseModel):
    # Contact fields are checked by crud.create_order so that a missing
    # value is reported the same way as an empty one.
    customer_name: Optional[str] = None
    customer_email: Optional[str] = None
    customer_phone: Optional[str] = None
    delivery_type: str = "pickup"
    delivery_address: Optional[str] = None
    order_items: List[OrderItem] = []
    subtotal: float = Field(ge=0)
    delivery_fee: float = Field(default=0, ge=0)
    total: Optional[float] = None
    notes: Optional[str] = None
    language: Optional[str] = None

class OrderCreated(BaseModel):
    order_id: int
    order_number: str

class Order(BaseModel):
    id: int
    order_number: str
    customer_name: str
    customer_email: str
    customer_phone: str
    delivery_type: str
    delivery_address: Optional[str] = None
    order_items: List[OrderItem]
    subtotal: float
    delivery_fee: float
    total: float
    status: str
    next_status: Optional[str] = None
    notes: Optional[str] = None
    language: Optional[str] = None
    created_at: datetime.datetime
    updated_at: datetime.datetime

    class Config:
        from_attributes = True

class OrderStatusUpdate(BaseModel):
    status: str

class TrackedItem(BaseModel):
    name: Optional[str] = None
    name_en: Optional[str] = None
    name_tr: Optional[str] = None
    name_az: Optional[str] = None
    name_ru: Optional[str] = None
    quantity: Optional[int] = None
    price: Optional[float] = None
    image_url: Optional[str] = None

class TrackedOrder(BaseModel):
    order_number: str
    status: str
    created_at: datetime.datetime
    updated_at: datetime.datetime
    delivery_type: str
    delivery_address: Optional[str] = None
    order_items: List[TrackedItem]
    subtotal: float
    delivery_fee: float
    total: float

# --- Store Schemas ---
class StoreProfileBase(BaseModel):
    store_name: str
    tagline: Optional[str] = None
    description: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    hours: Optional[str] = None
    delivery_info: Optional[str] = None
    social_media: Dict[str, str] = {}

class StoreProfileUpdate(BaseModel):
    store_name: Optional[str] = None
    tagline: Optional[str] = None
    description: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    hours: Optional[str] = None
    delivery_info: Optional[str] = None
    social_media: Optional[Dict[str, str]] = None

class StoreProfile(StoreProfileBase):
    updated_at: Optional[datetime.datetime] = None

    class Config:
        from_attributes = True

# --- Admin Schemas ---
class DashboardStats(BaseModel):
    total_plants: int
    total_orders: int
    pending_orders: int
    low_stock: int
    total_revenue: float

class TranslationUsage(BaseModel):
    monthly_character_limit: int
    current_month_usage: int
    usage_reset_date: Optional[str] = None
    auto_translate: bool
    total_characters: int
    total_translations: int

class UploadResult(BaseModel):
    url: str
    filename: str

class Message(BaseModel):
    message: str
