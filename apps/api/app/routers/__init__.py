from .routes_recommendations import router as recommendations_router

all_routers = [
    recommendations_router,
]
