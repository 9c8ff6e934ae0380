"""Daemon infrastructure - device stream backends."""

from .grpc_client import GrpcDaemonClient, GrpcDeviceStream, MonitorCodec, load_codec
from .loopback import LoopbackDeviceStream

__all__ = [
    "GrpcDaemonClient",
    "GrpcDeviceStream",
    "MonitorCodec",
    "load_codec",
    "LoopbackDeviceStream",
]
