# dashmachine: encrypted messaging between platform usernames

from dashmachine.client.connection import DashConnection
from dashmachine.client.documents import DocumentStore
from dashmachine.client.messaging import MessagingService
from dashmachine.client.names import NameResolver
from dashmachine.common.crypto import DashmachineCrypto

__all__ = [
    "DashConnection",
    "DashmachineCrypto",
    "DocumentStore",
    "MessagingService",
    "NameResolver",
]
