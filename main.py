import os
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from pymongo.database import Database
from pymongo.errors import PyMongoError

from database import (
    DATABASE_NAME,
    close,
    connect,
    create_document,
    get_db,
    get_documents,
    populate,
    sanitize,
    to_object_id,
)
from errors import NotFoundError, register_exception_handlers, store_errors
from logger_config import logger
from schemas import CategoryIn, ProductIn, ReviewIn, UserIn


@asynccontextmanager
async def lifespan(app: FastAPI):
    app.state.db = connect()
    logger.info(f"MongoDB client ready ({DATABASE_NAME})")
    try:
        yield
    finally:
        close(app.state.db)
        app.state.db = None
        logger.info("MongoDB client closed")


app = FastAPI(title="Marketplace API", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)


@app.get("/")
def read_root():
    return {"message": "Marketplace API running"}


# Categories
@app.post("/api/categories", status_code=201)
def create_category(payload: CategoryIn, db: Database = Depends(get_db)):
    payload.check()
    category = create_document(db, "category", {"name": payload.name})
    logger.info(f"Category created: {category['id']}")
    return category


@app.get("/api/categories")
def list_categories(db: Database = Depends(get_db)):
    with store_errors(500):
        categories = get_documents(db, "category")
    return [sanitize(c) for c in categories]


# Users
@app.post("/api/users", status_code=201)
def create_user(payload: UserIn, db: Database = Depends(get_db)):
    payload.check()
    data = {"username": payload.username, "email": payload.email}
    if payload.role is not None:
        data["role"] = payload.role
    user = create_document(db, "user", data)
    logger.info(f"User created: {user['id']}")
    return user


@app.get("/api/users")
def list_users(db: Database = Depends(get_db)):
    with store_errors(500):
        users = get_documents(db, "user", projection={"username": 1, "email": 1, "role": 1})
    return [sanitize(u) for u in users]


# Products
@app.get("/api/products")
def list_products(db: Database = Depends(get_db)):
    with store_errors(500):
        products = populate(get_documents(db, "product"), db, "categoryRef", "category")
    return [sanitize(p) for p in products]


@app.post("/api/products", status_code=201)
def create_product(payload: ProductIn, db: Database = Depends(get_db)):
    payload.check()
    product = create_document(db, "product", {
        "name": payload.name,
        "price": payload.price,
        "stock": payload.stock,
        "categoryRef": payload.category_ref,
    })
    logger.info(f"Product created: {product['id']}")
    return product


@app.delete("/api/products/{product_id}")
def delete_product(product_id: str, db: Database = Depends(get_db)):
    pid = to_object_id(product_id)
    with store_errors(400):
        deleted = db["product"].find_one_and_delete({"_id": pid})
    if deleted is None:
        raise NotFoundError("Product not found")
    logger.info(f"Product deleted: {product_id}")
    # Second phase is not atomic with the first; the product stays deleted either way
    try:
        result = db["review"].delete_many({"productRef": pid})
    except PyMongoError as e:
        logger.error(f"Reviews of deleted product {product_id} were not removed: {e}")
    else:
        logger.info(f"Removed {result.deleted_count} review(s) of product {product_id}")
    return {"message": "Product deleted along with its reviews"}


# Reviews
@app.post("/api/reviews", status_code=201)
def create_review(payload: ReviewIn, db: Database = Depends(get_db)):
    payload.check()
    review = create_document(db, "review", {
        "comment": payload.comment,
        "rating": payload.rating,
        "productRef": payload.product_ref,
        "authorRef": payload.author_ref,
    })
    logger.info(f"Review created: {review['id']} on product {review['productRef']}")
    return review


@app.get("/api/reviews/{product_id}")
def list_reviews(product_id: str, db: Database = Depends(get_db)):
    pid = to_object_id(product_id)
    with store_errors(400):
        reviews = get_documents(db, "review", {"productRef": pid})
        reviews = populate(reviews, db, "authorRef", "user", projection={"username": 1})
        reviews = populate(
            reviews, db, "productRef", "product",
            then=lambda products: populate(products, db, "categoryRef", "category"),
        )
    return [sanitize(r) for r in reviews]


@app.get("/test")
def test_database(request: Request):
    response = {
        "backend": "✅ Running",
        "database": "❌ Not Available",
        "database_name": None,
        "connection_status": "Not Connected",
        "collections": []
    }
    db = getattr(request.app.state, "db", None)
    if db is not None:
        response["database"] = "✅ Available"
        response["database_name"] = db.name
        try:
            collections = db.list_collection_names()
            response["collections"] = collections[:10]
            response["database"] = "✅ Connected & Working"
            response["connection_status"] = "Connected"
        except PyMongoError as e:
            logger.warning(f"Database check failed: {e}")
            response["database"] = f"⚠️  Connected but Error: {str(e)[:50]}"
    return response


if __name__ == "__main__":
    import uvicorn
    port = int(os.getenv("PORT", 3000))
    uvicorn.run(app, host="0.0.0.0", port=port)
