"""Resource handles for containers, images, exec instances, networks and volumes."""

from docker_engine_api.api.auth import RegistryAuth
from docker_engine_api.api.container import Container, Containers
from docker_engine_api.api.exec import Exec
from docker_engine_api.api.image import Image, Images
from docker_engine_api.api.network import Network, Networks
from docker_engine_api.api.port import Protocol, PublishPort
from docker_engine_api.api.volume import Volume, Volumes

__all__ = [
    "Container",
    "Containers",
    "Exec",
    "Image",
    "Images",
    "Network",
    "Networks",
    "Protocol",
    "PublishPort",
    "RegistryAuth",
    "Volume",
    "Volumes",
]
