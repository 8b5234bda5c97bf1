"""Credential rotation: seal refreshed tokens and publish them as secrets.

Key components:
- seal_credential: pure sealing of one credential under a recipient key
- CredentialRotationPublisher: AWAITING_KEY -> READY state machine that
  fetches the recipient key once and serializes publishes
- CredentialRotationChannel: thread-safe hand-off from the auth layer's
  refresh callback to a single publishing task

The plaintext token only ever exists in process memory; what leaves the
process is a libsodium sealed box that only the secret store can open.
"""

import asyncio
from base64 import b64encode
from enum import Enum

from attrs import define, field
from nacl import encoding, public

from likesync.config import get_logger
from likesync.domain.entities import Credential, RecipientKey, SecretPayload
from likesync.domain.exceptions import CredentialPublishError
from likesync.domain.interfaces import SecretStoreAPI

logger = get_logger(__name__)


def seal_credential(credential: Credential, recipient_key: RecipientKey) -> SecretPayload:
    """Encrypt a credential for the holder of `recipient_key`.

    Uses an anonymous sealed box: a fresh ephemeral sender keypair per call,
    so the ciphertext carries no sender identity and differs on every call.

    Args:
        credential: Token record to protect
        recipient_key: Base64 public key and its id from the secret store

    Returns:
        SecretPayload with base64 ciphertext and the recipient key id
    """
    key = public.PublicKey(recipient_key.key.encode("utf-8"), encoding.Base64Encoder())
    sealed = public.SealedBox(key).encrypt(credential.to_bytes())
    return SecretPayload(
        encrypted_value=b64encode(sealed).decode("utf-8"),
        key_id=recipient_key.key_id,
    )


class PublisherState(Enum):
    """Lifecycle of the publisher within one process."""

    AWAITING_KEY = "awaiting_key"
    READY = "ready"


@define(slots=True)
class CredentialRotationPublisher:
    """Publishes refreshed credentials to the secret store.

    The recipient key is fetched on first use and held for the process
    lifetime. If that fetch fails the run cannot rotate its token, so the
    error propagates to the caller instead of being skipped.
    """

    secret_store: SecretStoreAPI
    repository: str
    secret_name: str
    _recipient_key: RecipientKey | None = field(default=None, init=False)
    _key_lock: asyncio.Lock = field(factory=asyncio.Lock, init=False)
    _publish_lock: asyncio.Lock = field(factory=asyncio.Lock, init=False)

    @property
    def state(self) -> PublisherState:
        return PublisherState.READY if self._recipient_key else PublisherState.AWAITING_KEY

    async def ensure_ready(self) -> RecipientKey:
        """Fetch the recipient key once; later calls return the cached key."""
        async with self._key_lock:
            if self._recipient_key is None:
                logger.debug(f"Fetching secret store public key for {self.repository}")
                self._recipient_key = await self.secret_store.get_public_key(self.repository)
                logger.info(f"Secret store key {self._recipient_key.key_id} loaded")
            return self._recipient_key

    async def publish(self, credential: Credential) -> SecretPayload:
        """Seal `credential` and replace the stored secret with it.

        Only one publish is in flight at a time; overlapping refreshes are
        written in arrival order, so the last one wins.
        """
        recipient_key = await self.ensure_ready()
        async with self._publish_lock:
            payload = seal_credential(credential, recipient_key)
            await self.secret_store.put_secret(self.repository, self.secret_name, payload)
        logger.info(f"Published rotated credential to secret {self.secret_name}")
        return payload


@define(slots=True)
class CredentialRotationChannel:
    """Carries refreshed credentials from the auth layer to the publisher.

    `submit` may be called from any thread (spotipy refreshes tokens inside
    worker threads). A single consumer task publishes in submission order.
    Failures are recorded and logged but never raised into the sync flow;
    `raise_for_failures` surfaces them once the sync is done.

    Usage:
        async with CredentialRotationChannel(publisher) as channel:
            cache_handler.add_listener(channel.submit)
            ...  # sync
        channel.raise_for_failures()
    """

    publisher: CredentialRotationPublisher
    failures: list[BaseException] = field(factory=list, init=False)
    published: int = field(default=0, init=False)
    _queue: asyncio.Queue | None = field(default=None, init=False)
    _loop: asyncio.AbstractEventLoop | None = field(default=None, init=False)
    _worker: asyncio.Task | None = field(default=None, init=False)

    async def __aenter__(self) -> "CredentialRotationChannel":
        self.start()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    def start(self) -> None:
        """Bind to the running loop and start the publishing task."""
        self._loop = asyncio.get_running_loop()
        self._queue = asyncio.Queue()
        self._worker = asyncio.create_task(
            self._consume(self._queue), name="credential-rotation"
        )

    def submit(self, credential: Credential) -> None:
        """Queue a credential for publishing. Safe to call from any thread."""
        if self._loop is None or self._queue is None:
            raise RuntimeError("CredentialRotationChannel is not running")
        self._loop.call_soon_threadsafe(self._queue.put_nowait, credential)

    async def drain(self) -> None:
        """Wait until every submitted credential has been handled."""
        if self._queue is not None:
            # Let thread-side submissions scheduled just before land first
            await asyncio.sleep(0)
            await self._queue.join()

    async def aclose(self) -> None:
        """Drain pending publishes and stop the consumer task.

        Later submissions raise RuntimeError instead of queueing unseen.
        """
        await self.drain()
        self._loop = None
        self._queue = None
        if self._worker is not None:
            self._worker.cancel()
            try:
                await self._worker
            except asyncio.CancelledError:
                pass
            self._worker = None

    def raise_for_failures(self) -> None:
        """Raise CredentialPublishError if any publish failed."""
        if self.failures:
            raise CredentialPublishError(list(self.failures))

    async def _consume(self, queue: asyncio.Queue) -> None:
        while True:
            credential = await queue.get()
            try:
                await self.publisher.publish(credential)
                self.published += 1
            except Exception as e:
                self.failures.append(e)
                logger.error(f"Credential publish failed: {e!s}")
            finally:
                queue.task_done()
