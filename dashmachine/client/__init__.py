# Platform client layer
from dashmachine.client.connection import DashConnection as DashConnection
from dashmachine.client.documents import DocumentStore as DocumentStore
from dashmachine.client.messaging import MessagingService as MessagingService
from dashmachine.client.names import NameResolver as NameResolver

__all__ = ["DashConnection", "DocumentStore", "MessagingService", "NameResolver"]
