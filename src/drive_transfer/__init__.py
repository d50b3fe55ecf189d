"""drive-transfer - transfer ownership of Google Drive files between accounts.

Usage:
    from drive_transfer.accounts import Authenticator, TokenStore
    from drive_transfer.transfer import BatchConfig, TransferService

    source = Authenticator(TokenStore(), prompt=input, notify=print).authenticate(
        "alice@example.com"
    )
    service = TransferService(source)
    summary = service.run_batch(file_ids, "bob@example.com", BatchConfig())
"""

__version__ = "0.1.0"
