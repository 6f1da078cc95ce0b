import logging
from fastapi import FastAPI, Depends, Request, UploadFile, File, Form, BackgroundTasks
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.security import OAuth2PasswordRequestForm
from fastapi.staticfiles import StaticFiles
from pydantic import ValidationError as SchemaValidationError
from sqlalchemy.orm import Session
from typing import List, Optional
from . import crud, models, schemas, auth, notifications, storage
from .auth import get_current_user, get_current_admin_user, get_optional_admin
from .database import engine, get_db
from .errors import FloristError, StorageError, ValidationError, AuthenticationError, NotFoundError
from .orders import redacted_view
from .translation import TranslationProvider, get_translation_provider

logging.basicConfig(
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    level=logging.INFO
)
logger = logging.getLogger(__name__)

models.Base.metadata.create_all(bind=engine)

app = FastAPI(title="Hayat Flora")

UPLOADS_DIR = storage.uploads_root()
UPLOADS_DIR.mkdir(parents=True, exist_ok=True)

app.mount("/uploads", StaticFiles(directory=str(UPLOADS_DIR)), name="uploads")


# --- Error handling ---

@app.exception_handler(FloristError)
async def florist_error_handler(request: Request, exc: FloristError):
    if isinstance(exc, StorageError):
        # Details were logged where the failure happened
        return JSONResponse(status_code=exc.status_code, content={"detail": "Internal server error"})
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message}, headers=exc.headers)

@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    error = exc.errors()[0]
    field = ".".join(str(part) for part in error["loc"] if part != "body")
    return JSONResponse(status_code=400, content={"detail": f"{field}: {error['msg']}" if field else error["msg"]})


# --- Auth ---

@app.post("/token", response_model=schemas.Token)
async def login_for_access_token(form_data: OAuth2PasswordRequestForm = Depends(), db: Session = Depends(get_db)):
    user = auth.authenticate_user(db, form_data.username, form_data.password)
    if not user:
        raise AuthenticationError("Incorrect username or password")
    return {"access_token": auth.create_user_token(user), "token_type": "bearer"}

@app.post("/api/login", response_model=schemas.LoginResponse)
async def login(credentials: schemas.LoginRequest, db: Session = Depends(get_db)):
    if not credentials.username or not credentials.password:
        raise ValidationError("Username and password are required")
    user = auth.authenticate_user(db, credentials.username, credentials.password)
    if not user:
        raise AuthenticationError("Invalid credentials")
    logger.info(f"User '{user.username}' logged in")
    return {"access_token": auth.create_user_token(user), "token_type": "bearer", "user": user}

@app.post("/api/logout", response_model=schemas.Message)
async def logout():
    # Tokens are stateless; the client drops its copy.
    return {"message": "Logout successful"}

@app.get("/api/verify-token", response_model=schemas.User)
async def verify_token(current_user: models.User = Depends(get_current_user)):
    return current_user


# --- Plants ---

@app.get("/api/plants", response_model=List[schemas.Plant])
def read_plants(
    category: Optional[str] = None,
    featured: Optional[bool] = None,
    search: Optional[str] = None,
    sort: Optional[str] = None,
    limit: Optional[int] = None,
    offset: int = 0,
    db: Session = Depends(get_db),
):
    return crud.list_plants(db, category=category, featured=featured, search=search,
                            sort=sort, skip=offset, limit=limit)

@app.get("/api/plants/{plant_id}", response_model=schemas.Plant)
def read_plant(
    plant_id: int,
    db: Session = Depends(get_db),
    admin_user: Optional[models.User] = Depends(get_optional_admin),
):
    db_plant = crud.get_plant(db, plant_id, only_available=admin_user is None)
    if db_plant is None:
        raise NotFoundError("Plant not found")
    return db_plant

@app.post("/api/plants", response_model=schemas.Plant)
def create_plant(
    name: str = Form(...),
    category: str = Form(...),
    price: float = Form(...),
    sale_price: Optional[float] = Form(None),
    stock_quantity: int = Form(0),
    status: str = Form("available"),
    featured: bool = Form(False),
    care_level: Optional[str] = Form(None),
    light_requirements: str = Form(""),
    water_needs: str = Form(""),
    pet_friendly: bool = Form(False),
    size: str = Form(""),
    growth_rate: str = Form(""),
    scientific_name: str = Form(""),
    description: str = Form(""),
    care_instructions: str = Form(""),
    image_url: Optional[str] = Form(None),
    gallery_images: List[str] = Form([]),
    image: Optional[UploadFile] = File(None),
    db: Session = Depends(get_db),
    provider: TranslationProvider = Depends(get_translation_provider),
    current_user: models.User = Depends(get_current_admin_user),
):
    try:
        plant_data = schemas.PlantCreate(
            name=name,
            category=category,
            price=price,
            sale_price=sale_price,
            stock_quantity=stock_quantity,
            status=status,
            featured=featured,
            care_level=care_level,
            light_requirements=light_requirements,
            water_needs=water_needs,
            pet_friendly=pet_friendly,
            size=size,
            growth_rate=growth_rate,
            scientific_name=scientific_name,
            description=description,
            care_instructions=care_instructions,
            image_url=image_url,
            gallery_images=gallery_images,
        )
    except SchemaValidationError as e:
        error = e.errors()[0]
        raise ValidationError(f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}")

    if image is None or not image.filename:
        return crud.create_plant(db=db, provider=provider, plant=plant_data)

    plant_data.image_url = storage.save_upload(image, "plants")
    try:
        return crud.create_plant(db=db, provider=provider, plant=plant_data)
    except FloristError:
        # The plant was not stored, so neither is its image
        storage.delete_upload("plants", plant_data.image_url.rsplit("/", 1)[-1])
        raise

@app.put("/api/plants/{plant_id}", response_model=schemas.Plant)
def update_plant(plant_id: int, plant_update: schemas.PlantUpdate, db: Session = Depends(get_db),
                 current_user: models.User = Depends(get_current_admin_user)):
    db_plant = crud.update_plant(db, plant_id=plant_id, plant_update=plant_update)
    if db_plant is None:
        raise NotFoundError("Plant not found")
    return db_plant

@app.delete("/api/plants/{plant_id}", response_model=schemas.Message)
def delete_plant(plant_id: int, db: Session = Depends(get_db),
                 current_user: models.User = Depends(get_current_admin_user)):
    if crud.delete_plant(db, plant_id=plant_id) is None:
        raise NotFoundError("Plant not found")
    return {"message": "Plant deleted successfully"}


# --- Categories ---

@app.get("/api/categories", response_model=List[schemas.Category])
def read_categories(db: Session = Depends(get_db), admin_user: Optional[models.User] = Depends(get_optional_admin)):
    # Admins also see inactive categories
    return crud.list_categories(db, include_inactive=admin_user is not None)

@app.post("/api/categories", response_model=schemas.Category)
def create_category(
    category: schemas.CategoryCreate,
    db: Session = Depends(get_db),
    provider: TranslationProvider = Depends(get_translation_provider),
    current_user: models.User = Depends(get_current_admin_user),
):
    return crud.create_category(db=db, provider=provider, category=category)

@app.put("/api/categories/{category_id}", response_model=schemas.Category)
def update_category(category_id: int, category_update: schemas.CategoryUpdate, db: Session = Depends(get_db),
                    current_user: models.User = Depends(get_current_admin_user)):
    db_category = crud.update_category(db, category_id=category_id, category_update=category_update)
    if db_category is None:
        raise NotFoundError("Category not found")
    return db_category

@app.delete("/api/categories/{category_id}", response_model=schemas.Message)
def delete_category(category_id: int, db: Session = Depends(get_db),
                    current_user: models.User = Depends(get_current_admin_user)):
    if crud.delete_category(db, category_id=category_id) is None:
        raise NotFoundError("Category not found")
    return {"message": "Category deleted successfully"}


# --- Orders ---

@app.post("/api/orders", response_model=schemas.OrderCreated)
def create_order(order: schemas.OrderCreate, background_tasks: BackgroundTasks, db: Session = Depends(get_db)):
    db_order = crud.create_order(db=db, order=order)
    background_tasks.add_task(
        notifications.send_new_order_notification,
        order_details=notifications.order_details(db_order),
    )
    return {"order_id": db_order.id, "order_number": db_order.order_number}

@app.get("/api/orders", response_model=List[schemas.Order])
def read_orders(
    status: Optional[str] = None,
    limit: Optional[int] = None,
    offset: int = 0,
    db: Session = Depends(get_db),
    admin_user: models.User = Depends(get_current_admin_user),
):
    return crud.list_orders(db, status=status, skip=offset, limit=limit)

@app.get("/api/orders/track/{order_number}", response_model=schemas.TrackedOrder)
def track_order(order_number: str, db: Session = Depends(get_db)):
    db_order = crud.get_order_by_number(db, order_number=order_number)
    if db_order is None:
        raise NotFoundError("Order not found")
    return redacted_view(db_order)

@app.get("/api/orders/{order_id}", response_model=schemas.Order)
def read_order(order_id: int, db: Session = Depends(get_db),
               admin_user: models.User = Depends(get_current_admin_user)):
    db_order = crud.get_order(db, order_id=order_id)
    if db_order is None:
        raise NotFoundError("Order not found")
    return db_order

@app.put("/api/orders/{order_id}/status", response_model=schemas.Order)
def update_order_status(order_id: int, status_update: schemas.OrderStatusUpdate, db: Session = Depends(get_db),
                        admin_user: models.User = Depends(get_current_admin_user)):
    return crud.set_order_status(db, order_id=order_id, status=status_update.status)


# --- Store ---

@app.get("/api/store", response_model=schemas.StoreProfile)
def read_store(db: Session = Depends(get_db)):
    return crud.get_store_profile(db)

@app.put("/api/store", response_model=schemas.StoreProfile)
def update_store(store_update: schemas.StoreProfileUpdate, db: Session = Depends(get_db),
                 admin_user: models.User = Depends(get_current_admin_user)):
    return crud.update_store_profile(db, store_update=store_update)


# --- Uploads ---

@app.post("/api/upload/{kind}", response_model=schemas.UploadResult)
def upload_file(kind: str, image: UploadFile = File(...),
                admin_user: models.User = Depends(get_current_admin_user)):
    url = storage.save_upload(image, kind)
    return {"url": url, "filename": url.rsplit("/", 1)[-1]}

@app.delete("/api/upload/{kind}/{filename}", response_model=schemas.Message)
def delete_file(kind: str, filename: str, admin_user: models.User = Depends(get_current_admin_user)):
    storage.delete_upload(kind, filename)
    return {"message": "File deleted successfully"}


# --- Admin dashboard ---

@app.get("/api/dashboard/stats", response_model=schemas.DashboardStats)
def dashboard_stats(db: Session = Depends(get_db), admin_user: models.User = Depends(get_current_admin_user)):
    return crud.get_dashboard_stats(db)

@app.get("/api/translations/usage", response_model=schemas.TranslationUsage)
def translation_usage(db: Session = Depends(get_db), admin_user: models.User = Depends(get_current_admin_user)):
    return crud.get_translation_usage(db)
