# 初始化路由文件夾
from . import fairness, leave_applications

# 匯出所有路由
routers = [
    fairness.router,
    leave_applications.router,
]
