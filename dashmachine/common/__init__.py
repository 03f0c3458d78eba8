# Common utilities
from dashmachine.common.config import Config as Config
from dashmachine.common.crypto import DashmachineCrypto as DashmachineCrypto
from dashmachine.common.logging_utils import setup_logger as setup_logger

__all__ = ["Config", "DashmachineCrypto", "setup_logger"]
