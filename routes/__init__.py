from routes import (
    admin_orders,
    admin_products,
    auth,
    common_feature,
    shop_address,
    shop_cart,
    shop_order,
    shop_products,
    shop_review,
    shop_search,
)

ROUTERS = [
    auth.router,
    admin_products.router,
    admin_orders.router,
    shop_products.router,
    shop_cart.router,
    shop_address.router,
    shop_order.router,
    shop_search.router,
    shop_review.router,
    common_feature.router,
]
