# storefront/product_service/main.py
from fastapi import FastAPI, HTTPException

app = FastAPI(title="Product Service (dev mock)")

#prices in whole won
PRODUCTS = {
    1: {"id": 1, "name": "Linen Shirt", "price": 39000},
    2: {"id": 2, "name": "Canvas Tote", "price": 12000},
    3: {"id": 3, "name": "Wool Coat", "price": 189000},
    4: {"id": 4, "name": "Cotton Socks", "price": 4500},
}


@app.get("/products/{product_id}")
def get_product(product_id: int):
    product = PRODUCTS.get(product_id)
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")
    return product
