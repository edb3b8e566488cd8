from routers import auth, categories, dashboard, products, suppliers, users

ALL_ROUTERS = (
    auth.router,
    users.router,
    categories.router,
    products.router,
    suppliers.router,
    dashboard.router,
)
