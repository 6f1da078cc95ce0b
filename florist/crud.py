import logging
from datetime import datetime
from typing import Optional

from pydantic import validate_email
from sqlalchemy import func, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from . import models, schemas
from .config import settings
from .errors import NotFoundError, StorageError, ValidationError
from .orders import DELIVERY_TYPES, check_transition, generate_order_number, requires_address
from .translation import TranslationProvider, TranslationResult, translate_category, translate_plant

logger = logging.getLogger(__name__)

LOW_STOCK_THRESHOLD = 5

# Columns that a partial update may change but never clear
REQUIRED_PLANT_FIELDS = ("stock_quantity", "status", "featured", "pet_friendly", "gallery_images")
REQUIRED_CATEGORY_FIELDS = ("display_order", "is_active")


def _commit(db: Session, action: str):
    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception(f"Database error while {action}")
        raise StorageError(f"Error {action}") from e

def _reject_nulls(update_data: dict, fields):
    for field in fields:
        if field in update_data and update_data[field] is None:
            raise ValidationError(f"'{field}' cannot be null")

# --- Users ---

def get_user_by_username(db: Session, username: str):
    return db.query(models.User).filter(models.User.username == username).first()

def create_or_update_admin(db: Session, username: str, password: str):
    from .auth import get_password_hash
    db_user = get_user_by_username(db, username)
    if db_user is None:
        db_user = models.User(username=username)
        db.add(db_user)
    db_user.hashed_password = get_password_hash(password)
    db_user.role = "admin"
    _commit(db, "saving admin user")
    db.refresh(db_user)
    return db_user

# --- Translation usage ---

def get_translation_settings(db: Session):
    db_settings = db.get(models.TranslationSettings, 1)
    if db_settings is None:
        db_settings = models.TranslationSettings(
            id=1,
            monthly_character_limit=settings.MONTHLY_CHARACTER_LIMIT,
            current_month_usage=0,
            usage_reset_date=datetime.utcnow().strftime("%Y-%m"),
            auto_translate=True,
        )
        db.add(db_settings)
    return db_settings

def record_translation_usage(db: Session, entity_type: str, entity_id: int,
                             result: TranslationResult, provider: TranslationProvider):
    """Append usage rows for a translated record. Never fails the caller."""
    if not result.entries:
        return
    try:
        characters = 0
        for entry in result.entries:
            characters += len(entry.source)
            db.add(models.TranslationLog(
                entity_type=entity_type,
                entity_id=entity_id,
                source_text=entry.source,
                target_language=entry.language,
                translated_text=entry.translated,
                character_count=len(entry.source),
                api_provider=provider.name,
            ))

        db_settings = get_translation_settings(db)
        month = datetime.utcnow().strftime("%Y-%m")
        if db_settings.usage_reset_date != month:
            db_settings.usage_reset_date = month
            db_settings.current_month_usage = 0
        db_settings.current_month_usage = (db_settings.current_month_usage or 0) + characters
        db_settings.updated_at = datetime.utcnow()
        if db_settings.current_month_usage > db_settings.monthly_character_limit:
            logger.warning(
                f"Translation usage {db_settings.current_month_usage} is over the monthly limit "
                f"of {db_settings.monthly_character_limit} characters"
            )
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception(f"Failed to record translation usage for {entity_type} {entity_id}")

def get_translation_usage(db: Session):
    db_settings = get_translation_settings(db)
    total_characters, total_translations = db.query(
        func.coalesce(func.sum(models.TranslationLog.character_count), 0),
        func.count(models.TranslationLog.id),
    ).one()
    return {
        "monthly_character_limit": db_settings.monthly_character_limit,
        "current_month_usage": db_settings.current_month_usage or 0,
        "usage_reset_date": db_settings.usage_reset_date,
        "auto_translate": db_settings.auto_translate,
        "total_characters": total_characters,
        "total_translations": total_translations,
    }

# --- Categories ---

def get_category(db: Session, category_id: int):
    return db.query(models.Category).filter(models.Category.id == category_id).first()

def find_category(db: Session, ref):
    """Resolve a category by id, or by name for older clients."""
    if isinstance(ref, int) or (isinstance(ref, str) and ref.isdigit()):
        return get_category(db, int(ref))
    return db.query(models.Category).filter(models.Category.name == ref).first()

def list_categories(db: Session, include_inactive: bool = False):
    query = db.query(models.Category)
    if not include_inactive:
        query = query.filter(models.Category.is_active.is_(True))
    return query.order_by(models.Category.display_order.asc(), models.Category.id.asc()).all()

def create_category(db: Session, provider: TranslationProvider, category: schemas.CategoryCreate):
    if not category.name or not category.name.strip():
        raise ValidationError("Category name is required")

    # Translate before touching the database so a failure leaves nothing behind
    translations = translate_category(provider, category.name, category.description or "")

    db_category = models.Category(
        name=category.name,
        description=category.description or "",
        image_url=category.image_url,
        display_order=category.display_order,
        is_active=category.is_active,
        translation_status="complete",
        last_translated=datetime.utcnow(),
        **translations.columns(),
    )
    db.add(db_category)
    _commit(db, "creating category")
    db.refresh(db_category)
    logger.info(f"Created category {db_category.id} '{db_category.name}'")

    record_translation_usage(db, "category", db_category.id, translations, provider)
    return db_category

def update_category(db: Session, category_id: int, category_update: schemas.CategoryUpdate):
    db_category = get_category(db, category_id)
    if not db_category:
        return None

    update_data = category_update.model_dump(exclude_unset=True)
    if "name" in update_data and not (update_data["name"] or "").strip():
        raise ValidationError("Category name is required")
    _reject_nulls(update_data, REQUIRED_CATEGORY_FIELDS)
    for key, value in update_data.items():
        setattr(db_category, key, value)

    _commit(db, "updating category")
    db.refresh(db_category)
    return db_category

def delete_category(db: Session, category_id: int):
    db_category = get_category(db, category_id)
    if db_category:
        # Plants stay in the catalog without a category
        db.query(models.Plant).filter(models.Plant.category_id == category_id).update(
            {models.Plant.category_id: None}, synchronize_session=False
        )
        db.delete(db_category)
        _commit(db, "deleting category")
        logger.info(f"Deleted category {category_id}")
    return db_category

# --- Plants ---

def check_sale_price(price: float, sale_price: Optional[float]):
    if sale_price is not None and sale_price >= price:
        raise ValidationError("Sale price must be lower than the regular price")

def get_plant(db: Session, plant_id: int, only_available: bool = False):
    query = db.query(models.Plant).filter(models.Plant.id == plant_id)
    if only_available:
        query = query.filter(models.Plant.status == "available")
    return query.first()

def list_plants(
    db: Session,
    category: Optional[str] = None,
    featured: Optional[bool] = None,
    search: Optional[str] = None,
    sort: Optional[str] = None,
    skip: int = 0,
    limit: Optional[int] = None,
):
    query = db.query(models.Plant).outerjoin(models.Category).filter(models.Plant.status == "available")

    if category:
        if category.isdigit():
            query = query.filter(models.Plant.category_id == int(category))
        else:
            query = query.filter(models.Category.name == category)

    if featured:
        query = query.filter(models.Plant.featured.is_(True))

    if search:
        pattern = f"%{search}%"
        query = query.filter(or_(
            models.Plant.name.ilike(pattern),
            models.Plant.description.ilike(pattern),
            models.Plant.scientific_name.ilike(pattern),
        ))

    if sort == "price_asc":
        query = query.order_by(models.Plant.price.asc())
    elif sort == "price_desc":
        query = query.order_by(models.Plant.price.desc())
    elif sort == "name":
        query = query.order_by(models.Plant.name.asc())
    elif sort == "newest":
        query = query.order_by(models.Plant.created_at.desc(), models.Plant.id.desc())
    else:
        query = query.order_by(
            models.Plant.featured.desc(), models.Plant.created_at.desc(), models.Plant.id.desc()
        )

    if skip:
        query = query.offset(skip)
    if limit:
        query = query.limit(limit)
    return query.all()

def create_plant(db: Session, provider: TranslationProvider, plant: schemas.PlantCreate):
    if not plant.name or not plant.name.strip():
        raise ValidationError("Name, category, and price are required")
    check_sale_price(plant.price, plant.sale_price)

    db_category = find_category(db, plant.category)
    if not db_category:
        raise ValidationError("Invalid category")

    translations = translate_plant(
        provider, plant.name, plant.description or "", plant.care_instructions or ""
    )

    plant_data = plant.model_dump(exclude={"category"})
    db_plant = models.Plant(
        **plant_data,
        category_id=db_category.id,
        translation_status="complete",
        last_translated=datetime.utcnow(),
        **translations.columns(),
    )
    db.add(db_plant)
    _commit(db, "creating plant")
    db.refresh(db_plant)
    logger.info(f"Created plant {db_plant.id} '{db_plant.name}'")

    record_translation_usage(db, "plant", db_plant.id, translations, provider)
    return db_plant

def update_plant(db: Session, plant_id: int, plant_update: schemas.PlantUpdate):
    db_plant = get_plant(db, plant_id)
    if not db_plant:
        return None

    update_data = plant_update.model_dump(exclude_unset=True)
    if "name" in update_data and not (update_data["name"] or "").strip():
        raise ValidationError("Plant name is required")
    if "price" in update_data and update_data["price"] is None:
        raise ValidationError("Price is required")
    _reject_nulls(update_data, REQUIRED_PLANT_FIELDS)

    price = update_data.get("price", db_plant.price)
    sale_price = update_data.get("sale_price", db_plant.sale_price)
    check_sale_price(price, sale_price)

    if "category" in update_data:
        ref = update_data.pop("category")
        db_category = find_category(db, ref) if ref is not None else None
        if ref is not None and not db_category:
            raise ValidationError("Invalid category")
        db_plant.category_id = db_category.id if db_category else None

    # Translations are only produced on create
    for key, value in update_data.items():
        setattr(db_plant, key, value)
    db_plant.updated_at = datetime.utcnow()

    _commit(db, "updating plant")
    db.refresh(db_plant)
    return db_plant

def delete_plant(db: Session, plant_id: int):
    db_plant = get_plant(db, plant_id)
    if db_plant:
        db.delete(db_plant)
        _commit(db, "deleting plant")
        logger.info(f"Deleted plant {plant_id}")
    return db_plant

# --- Orders ---

def get_order(db: Session, order_id: int):
    return db.query(models.Order).filter(models.Order.id == order_id).first()

def get_order_by_number(db: Session, order_number: str):
    return db.query(models.Order).filter(models.Order.order_number == order_number).first()

def list_orders(db: Session, status: Optional[str] = None, skip: int = 0, limit: Optional[int] = None):
    query = db.query(models.Order)
    if status:
        query = query.filter(models.Order.status == status)
    query = query.order_by(models.Order.created_at.desc(), models.Order.id.desc())
    if skip:
        query = query.offset(skip)
    if limit:
        query = query.limit(limit)
    return query.all()

def _validate_order(order: schemas.OrderCreate):
    if not all(value and value.strip() for value in
               (order.customer_name, order.customer_email, order.customer_phone)):
        raise ValidationError("Required fields missing")
    if not order.order_items:
        raise ValidationError("Order must contain at least one item")
    try:
        validate_email(order.customer_email)
    except ValueError:
        raise ValidationError("Invalid email address")

    if order.delivery_type not in DELIVERY_TYPES:
        raise ValidationError("Invalid delivery type")
    if requires_address(order.delivery_type) and not (order.delivery_address or "").strip():
        raise ValidationError("Delivery address is required for delivery orders")

    for item in order.order_items:
        if item.quantity <= 0:
            raise ValidationError(f"Invalid quantity for '{item.name}'")
        if item.price < 0:
            raise ValidationError(f"Invalid price for '{item.name}'")

def create_order(db: Session, order: schemas.OrderCreate):
    _validate_order(order)

    # Totals are stored as the storefront computed them; catalog prices are not re-checked.
    expected_total = round(order.subtotal + order.delivery_fee, 2)
    total = expected_total if order.total is None else order.total
    if abs(total - expected_total) > 0.005:
        raise ValidationError("Total must equal subtotal plus delivery fee")

    # Stock is not reserved or decremented here.
    db_order = models.Order(
        order_number=generate_order_number(),
        customer_name=order.customer_name.strip(),
        customer_email=order.customer_email.strip(),
        customer_phone=order.customer_phone.strip(),
        delivery_type=order.delivery_type,
        delivery_address=order.delivery_address if requires_address(order.delivery_type) else None,
        order_items=[item.model_dump() for item in order.order_items],
        subtotal=order.subtotal,
        delivery_fee=order.delivery_fee,
        total=total,
        status="pending",
        notes=order.notes,
        language=order.language,
    )
    db.add(db_order)
    _commit(db, "creating order")
    db.refresh(db_order)
    logger.info(f"Created order {db_order.order_number} ({len(db_order.order_items)} items, total {db_order.total})")
    return db_order

def set_order_status(db: Session, order_id: int, status: str):
    db_order = get_order(db, order_id)
    if not db_order:
        raise NotFoundError("Order not found")

    check_transition(db_order.status, status)
    previous = db_order.status
    db_order.status = status
    db_order.updated_at = datetime.utcnow()
    _commit(db, "updating order status")
    db.refresh(db_order)
    logger.info(f"Order {db_order.order_number} moved from {previous} to {status}")
    return db_order

# --- Store profile ---

def get_store_profile(db: Session):
    """The single store profile row, or an unsaved default until an admin edits it."""
    db_store = db.get(models.StoreProfile, 1)
    if db_store is None:
        db_store = models.StoreProfile(id=1, store_name=settings.STORE_NAME, social_media={})
    return db_store

def update_store_profile(db: Session, store_update: schemas.StoreProfileUpdate):
    update_data = store_update.model_dump(exclude_unset=True)
    if "store_name" in update_data and not (update_data["store_name"] or "").strip():
        raise ValidationError("Store name is required")
    if update_data.get("email"):
        try:
            validate_email(update_data["email"])
        except ValueError:
            raise ValidationError("Invalid email address")
    if "social_media" in update_data and update_data["social_media"] is None:
        update_data["social_media"] = {}

    db_store = get_store_profile(db)
    if db_store not in db:
        db.add(db_store)
    for key, value in update_data.items():
        setattr(db_store, key, value)
    db_store.updated_at = datetime.utcnow()

    _commit(db, "updating store information")
    db.refresh(db_store)
    logger.info("Updated store profile")
    return db_store

# --- Dashboard ---

def get_dashboard_stats(db: Session):
    available = db.query(models.Plant).filter(models.Plant.status == "available")
    return {
        "total_plants": available.count(),
        "total_orders": db.query(models.Order).count(),
        "pending_orders": db.query(models.Order).filter(models.Order.status == "pending").count(),
        "low_stock": available.filter(models.Plant.stock_quantity <= LOW_STOCK_THRESHOLD).count(),
        "total_revenue": db.query(func.coalesce(func.sum(models.Order.total), 0))
        .filter(models.Order.status != "cancelled").scalar(),
    }
