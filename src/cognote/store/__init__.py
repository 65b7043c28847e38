from cognote.store.failures import FailureSink, FileFailureSink
from cognote.store.messages import MessageSink, MessageStore, StoredMessage

__all__ = ["FailureSink", "FileFailureSink", "MessageSink", "MessageStore", "StoredMessage"]
