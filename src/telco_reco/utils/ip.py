"""
@File       : ip.py
@Description: 推荐服务注册到 nacos 时使用的本机 IP（未配置 SERVICE_IP 时）

@Time       : 2026/01/12 21:14
@Author     : hcy18
"""
import socket

from telco_reco.utils.logger import app_logger as logger


def get_local_ip() -> str:
    """获取本机内网 IP（非 127.0.0.1），失败时退回回环地址."""
    try:
        # 连接一个外部地址（UDP，不会真正发包）
        with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as s:
            s.connect(("8.8.8.8", 80))
            return s.getsockname()[0]
    except OSError:
        logger.warning("获取本机 ip 异常，推荐服务将以 127.0.0.1 注册")
        return "127.0.0.1"
