from fastapi import APIRouter

from app.api.routes import file_router, health_router

api_router = APIRouter()

# 将所有路由配置定义在一个列表中
# 每个元素都是一个包含 router, prefix, 和 tags 的字典
routers_to_include = [
    {"router": file_router.router, "prefix": "/file", "tags": ["file"]},
]

for route_config in routers_to_include:
    api_router.include_router(**route_config)

# 健康检查不挂在 api_prefix 下
health_api_router = APIRouter()
health_api_router.include_router(health_router.router, tags=["health"])
