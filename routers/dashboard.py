from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

import authentication, database, models, schema
from responses import ok

router = APIRouter(prefix="/dashboard", tags=["Dashboard"])

LOW_STOCK_ALERT_LIMIT = 5


@router.get("/stats")
def read_dashboard_stats(
    db: Session = Depends(database.obtain_db_session),
    current_user: models.User = Depends(authentication.verify_user_session),
):
    products = db.query(models.Product)
    low_stock = products.filter(models.Product.is_low_stock)
    alerts = (
        low_stock.order_by(models.Product.quantity.asc(), models.Product.id.asc())
        .limit(LOW_STOCK_ALERT_LIMIT)
        .all()
    )
    stats = schema.DashboardStats(
        total_products=products.filter(models.Product.type == "product").count(),
        total_services=products.filter(models.Product.type == "service").count(),
        total_categories=db.query(models.Category).filter(models.Category.is_active.is_(True)).count(),
        total_users=db.query(models.User).count(),
        total_suppliers=db.query(models.Supplier).count(),
        out_of_stock_products=products.filter(models.Product.is_out_of_stock).count(),
        low_stock_products=low_stock.count(),
        low_stock_alerts=[schema.LowStockAlert.model_validate(p) for p in alerts],
    )
    return ok(stats)
