"""12306 定时抢票"""

__version__ = "1.0.0"
