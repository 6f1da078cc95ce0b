from sqlalchemy import Column, Integer, String, Float, DateTime, Boolean, Text, JSON, ForeignKey
from sqlalchemy.orm import relationship
from .database import Base
from .orders import NEXT_STATUS
import datetime


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String, unique=True, index=True, nullable=False)
    hashed_password = Column(String, nullable=False)
    role = Column(String, default="admin", nullable=False)
    created_at = Column(DateTime, default=datetime.datetime.utcnow)


class Category(Base):
    __tablename__ = "categories"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    description = Column(Text, default="")
    name_en = Column(String)
    name_az = Column(String)
    name_ru = Column(String)
    description_en = Column(Text)
    description_az = Column(Text)
    description_ru = Column(Text)
    image_url = Column(String, nullable=True)
    display_order = Column(Integer, default=0)
    is_active = Column(Boolean, default=True, nullable=False)
    translation_status = Column(String, default="pending")  # pending or complete
    last_translated = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.datetime.utcnow)

    plants = relationship("Plant", back_populates="category")


class Plant(Base):
    __tablename__ = "plants"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, index=True, nullable=False)
    scientific_name = Column(String, default="")
    description = Column(Text, default="")
    care_instructions = Column(Text, default="")
    name_en = Column(String)
    name_az = Column(String)
    name_ru = Column(String)
    description_en = Column(Text)
    description_az = Column(Text)
    description_ru = Column(Text)
    care_instructions_en = Column(Text)
    care_instructions_az = Column(Text)
    care_instructions_ru = Column(Text)
    category_id = Column(Integer, ForeignKey("categories.id", ondelete="SET NULL"), nullable=True)
    price = Column(Float, nullable=False)
    sale_price = Column(Float, nullable=True)
    stock_quantity = Column(Integer, default=0, nullable=False)
    status = Column(String, default="available")  # available or unavailable
    featured = Column(Boolean, default=False)
    care_level = Column(String, nullable=True)
    light_requirements = Column(String, default="")
    water_needs = Column(String, default="")
    pet_friendly = Column(Boolean, default=False, nullable=False)
    size = Column(String, default="")
    growth_rate = Column(String, default="")
    image_url = Column(String, nullable=True)
    gallery_images = Column(JSON, default=list)
    translation_status = Column(String, default="pending")
    last_translated = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.datetime.utcnow)

    category = relationship("Category", back_populates="plants")

    @property
    def category_name(self):
        return self.category.name if self.category else None


class Order(Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, index=True)
    order_number = Column(String, unique=True, index=True, nullable=False)
    customer_name = Column(String, nullable=False)
    customer_email = Column(String, nullable=False)
    customer_phone = Column(String, nullable=False)
    delivery_type = Column(String, nullable=False)
    delivery_address = Column(Text, nullable=True)
    # Snapshot of the cart at checkout, never a live reference to plants
    order_items = Column(JSON, nullable=False)
    subtotal = Column(Float, nullable=False)
    delivery_fee = Column(Float, default=0)
    total = Column(Float, nullable=False)
    status = Column(String, default="pending", nullable=False)
    notes = Column(Text, nullable=True)
    language = Column(String, nullable=True)
    created_at = Column(DateTime, default=datetime.datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.datetime.utcnow)

    @property
    def next_status(self):
        return NEXT_STATUS.get(self.status)


class TranslationLog(Base):
    __tablename__ = "translation_logs"

    id = Column(Integer, primary_key=True, index=True)
    entity_type = Column(String, nullable=False)  # plant or category
    entity_id = Column(Integer, nullable=False)
    source_text = Column(Text, nullable=False)
    target_language = Column(String, nullable=False)
    translated_text = Column(Text, nullable=False)
    character_count = Column(Integer, nullable=False)
    api_provider = Column(String, default="google_translate")
    created_at = Column(DateTime, default=datetime.datetime.utcnow)


class TranslationSettings(Base):
    __tablename__ = "translation_settings"

    id = Column(Integer, primary_key=True)
    monthly_character_limit = Column(Integer, default=500000)
    current_month_usage = Column(Integer, default=0)
    usage_reset_date = Column(String, nullable=True)  # YYYY-MM of the counted month
    auto_translate = Column(Boolean, default=True)
    created_at = Column(DateTime, default=datetime.datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.datetime.utcnow)


class StoreProfile(Base):
    __tablename__ = "store_profile"

    id = Column(Integer, primary_key=True)
    store_name = Column(String, nullable=False)
    tagline = Column(String, nullable=True)
    description = Column(Text, nullable=True)
    email = Column(String, nullable=True)
    phone = Column(String, nullable=True)
    address = Column(Text, nullable=True)
    hours = Column(String, nullable=True)
    delivery_info = Column(Text, nullable=True)
    social_media = Column(JSON, default=dict)  # network name -> profile url
    updated_at = Column(DateTime, default=datetime.datetime.utcnow)
