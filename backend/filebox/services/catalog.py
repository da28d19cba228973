"""File catalog — the signed-in identity's files and the operations that change them.

The catalog owns two pieces of state: ``records`` (an immutable tuple that
is swapped wholesale, so readers never see a half-applied change) and
``busy``. Every public operation resolves to an :class:`Outcome`; provider
failures are logged and reported, never raised.

Local state is updated from each operation's own result rather than from a
confirming listing, so it can drift from the store until the next
``refresh()``. Mutations that land while a listing is in flight are
journalled and re-applied on top of the listing result.
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import contextmanager
from enum import Enum
from typing import TYPE_CHECKING, Callable, Iterator

from filebox.schemas.files import CatalogSnapshot, FileKind, FileRecord
from filebox.services.errors import FileBoxError, NotAuthenticated, NotFound, ValidationError
from filebox.services.outcome import Outcome
from filebox.utils import naming

if TYPE_CHECKING:
    from filebox.services.auth_session import Identity
    from filebox.services.object_store import ObjectStore

logger = logging.getLogger(__name__)

Records = tuple[FileRecord, ...]
Change = Callable[[Records], Records]

NOT_SIGNED_IN = "Not authenticated"
LOAD_FAILED = "Catalog load failed"
UPLOAD_FAILED = "Upload failed"
DELETE_FAILED = "Delete failed"
RENAME_FAILED = "Rename failed"

MAX_SUFFIX_ATTEMPTS = 100


class CollisionPolicy(str, Enum):
    OVERWRITE = "overwrite"  # last writer wins
    REJECT = "reject"
    SUFFIX = "suffix"  # "name (1).ext", "name (2).ext", ...


def _upserted(records: Records, record: FileRecord) -> Records:
    if any(r.id == record.id for r in records):
        return tuple(record if r.id == record.id else r for r in records)
    return records + (record,)


def _without(records: Records, key: str) -> Records:
    return tuple(r for r in records if r.id != key)


def _replaced(records: Records, old_key: str, record: FileRecord) -> Records:
    """Put ``record`` where ``old_key`` was, dropping any other copy of its id."""
    if not any(r.id == old_key for r in records):
        return _upserted(records, record)
    out = []
    for r in records:
        if r.id == old_key:
            out.append(record)
        elif r.id != record.id:
            out.append(r)
    return tuple(out)


class FileCatalog:
    """Per-identity file catalog backed by a remote object store."""

    def __init__(
        self,
        store: ObjectStore,
        upload_root: str = "uploads",
        collision_policy: CollisionPolicy | str = CollisionPolicy.OVERWRITE,
    ):
        self._store = store
        self._root = upload_root.strip("/")
        self._policy = CollisionPolicy(collision_policy)
        self._identity: Identity | None = None
        self._records: Records = ()
        self._epoch = 0
        self._inflight = 0
        self._listing: asyncio.Task | None = None
        self._journal: list[Change] | None = None
        self._orphans: dict[str, set[str]] = {}  # uid -> keys left behind by renames

    @property
    def records(self) -> Records:
        return self._records

    @property
    def busy(self) -> bool:
        return self._inflight > 0

    @property
    def identity(self) -> Identity | None:
        return self._identity

    @property
    def collision_policy(self) -> CollisionPolicy:
        return self._policy

    def snapshot(self) -> CatalogSnapshot:
        return CatalogSnapshot(busy=self.busy, records=list(self._records))

    def prefix_for(self, uid: str) -> str:
        return f"{self._root}/{uid}/"

    def key_for(self, uid: str, name: str) -> str:
        return f"{self.prefix_for(uid)}{name}"

    # -- session lifecycle ---------------------------------------------------

    def attach(self, identity: Identity) -> None:
        """Scope the catalog to ``identity``; a different uid starts empty."""
        if self._identity is not None and self._identity.uid == identity.uid:
            self._identity = identity
            return
        self._reset()
        self._identity = identity
        logger.info("Catalog attached to uid=%s", identity.uid)

    def clear(self) -> None:
        """Drop all records and detach. No network call."""
        had_identity = self._identity is not None
        self._reset()
        self._identity = None
        if had_identity:
            logger.info("Catalog cleared")

    def _reset(self) -> None:
        self._epoch += 1
        self._records = ()
        self._inflight = 0
        self._listing = None
        self._journal = None

    def _still_current(self, epoch: int) -> bool:
        return epoch == self._epoch and self._identity is not None

    @contextmanager
    def _busy(self, epoch: int) -> Iterator[None]:
        counted = epoch == self._epoch
        if counted:
            self._inflight += 1
        try:
            yield
        finally:
            # _reset() already zeroed the counter for older sessions
            if counted and epoch == self._epoch:
                self._inflight -= 1

    def _forget_orphan(self, uid: str, key: str) -> None:
        """``key`` holds a live object again, so cleanup must leave it alone."""
        orphans = self._orphans.get(uid)
        if orphans:
            orphans.discard(key)

    def _apply(self, change: Change) -> None:
        self._records = change(self._records)
        if self._journal is not None:
            self._journal.append(change)

    # -- preconditions -------------------------------------------------------

    def _require_identity(self) -> Identity:
        if self._identity is None:
            raise NotAuthenticated("Sign in to manage files")
        return self._identity

    def _check_owned(self, identity: Identity, file_id: str) -> None:
        prefix = self.prefix_for(identity.uid)
        rest = file_id[len(prefix):] if file_id.startswith(prefix) else ""
        if not rest or "/" in rest:
            raise ValidationError(f"{file_id} does not belong to the signed-in account")

    @staticmethod
    def _clean_name(name: str | None) -> str:
        name = (name or "").strip()
        if not name:
            raise ValidationError("File name cannot be empty")
        if "/" in name:
            raise ValidationError("File name cannot contain '/'")
        return name

    @staticmethod
    def _parse_kind(kind: FileKind | str) -> FileKind:
        try:
            return FileKind.parse(kind)
        except ValueError:
            raise ValidationError(f"Unknown file kind: {kind}")

    def _find(self, file_id: str) -> FileRecord | None:
        for record in self._records:
            if record.id == file_id:
                return record
        return None

    def _fail(self, message: str, error: FileBoxError) -> Outcome:
        if isinstance(error, NotAuthenticated):
            message = NOT_SIGNED_IN
        logger.warning("%s: %s", message, error)
        return Outcome.failure(message, error)

    def _stale(self) -> Outcome:
        return self._fail(
            NOT_SIGNED_IN,
            NotAuthenticated("Session changed before the operation completed"),
        )

    async def _exists(self, key: str) -> bool:
        try:
            await self._store.get_locator(key)
        except NotFound:
            return False
        return True

    async def _resolve_collision(self, uid: str, name: str) -> str:
        key = self.key_for(uid, name)
        if self._policy is CollisionPolicy.OVERWRITE or not await self._exists(key):
            return key
        if self._policy is CollisionPolicy.REJECT:
            raise ValidationError(f"A file named {name} already exists")
        for n in range(1, MAX_SUFFIX_ATTEMPTS + 1):
            candidate = self.key_for(uid, naming.with_suffix(name, n))
            if not await self._exists(candidate):
                return candidate
        raise ValidationError(f"No free name left for {name}")

    # -- load / refresh ------------------------------------------------------

    async def load(self) -> Outcome:
        """Replace ``records`` with the identity's current listing.

        Calls made while a listing is in flight join it instead of
        starting another one.
        """
        try:
            identity = self._require_identity()
        except NotAuthenticated as e:
            return self._fail(LOAD_FAILED, e)

        listing = self._listing
        if listing is None or listing.done():
            listing = asyncio.create_task(self._run_listing(identity, self._epoch))
            self._listing = listing
        else:
            logger.debug("Listing already in flight, joining it")
        return await asyncio.shield(listing)

    async def refresh(self) -> Outcome:
        return await self.load()

    async def _run_listing(self, identity: Identity, epoch: int) -> Outcome:
        if not self._still_current(epoch):
            return self._stale()

        journal: list[Change] = []
        self._journal = journal
        try:
            with self._busy(epoch):
                await self._reap_orphans(identity.uid)
                try:
                    objects = await self._store.list(self.prefix_for(identity.uid))
                    locators = await asyncio.gather(
                        *(self._locate(obj.key) for obj in objects)
                    )
                except FileBoxError as e:
                    return self._fail(LOAD_FAILED, e)

                if not self._still_current(epoch):
                    return self._stale()

                records: Records = tuple(
                    FileRecord(
                        id=obj.key,
                        name=obj.name,
                        locator=locator,
                        kind=naming.classify(obj.name),
                    )
                    for obj, locator in zip(objects, locators)
                    if locator is not None
                )
                for change in journal:
                    records = change(records)
                self._records = records
        finally:
            if self._journal is journal:
                self._journal = None
            if self._listing is asyncio.current_task():
                self._listing = None

        logger.info("Loaded %d files for uid=%s", len(records), identity.uid)
        return Outcome.success(f"Loaded {len(records)} files")

    async def _locate(self, key: str) -> str | None:
        """Locator for a listed key, or None if it vanished since the listing."""
        try:
            return await self._store.get_locator(key)
        except NotFound:
            logger.debug("%s disappeared before its locator was resolved", key)
            return None

    async def _reap_orphans(self, uid: str) -> None:
        """Delete originals that an interrupted rename left behind."""
        orphans = self._orphans.get(uid)
        if not orphans:
            return
        for key in sorted(orphans):
            if key not in orphans:
                continue
            try:
                await self._store.delete(key)
                logger.info("Removed %s left behind by an interrupted rename", key)
            except NotFound:
                pass
            except FileBoxError as e:
                logger.warning("Could not remove leftover %s: %s", key, e)
                continue
            orphans.discard(key)

    # -- mutations -----------------------------------------------------------

    async def add(
        self,
        payload: bytes,
        kind: FileKind | str,
        desired_name: str | None = None,
    ) -> Outcome:
        """Upload ``payload`` as a new file and append it to the catalog."""
        try:
            identity = self._require_identity()
            kind = self._parse_kind(kind)
            if desired_name is not None and desired_name.strip():
                name = naming.normalize_name(self._clean_name(desired_name), kind)
            else:
                name = naming.generate_name(kind)
        except FileBoxError as e:
            return self._fail(UPLOAD_FAILED, e)

        epoch = self._epoch
        with self._busy(epoch):
            try:
                key = await self._resolve_collision(identity.uid, name)
                name = key.rsplit("/", 1)[-1]
                await self._store.upload(key, payload, naming.content_type_for(name))
                self._forget_orphan(identity.uid, key)
                locator = await self._store.get_locator(key)
            except FileBoxError as e:
                return self._fail(UPLOAD_FAILED, e)

            if not self._still_current(epoch):
                return self._stale()
            record = FileRecord(id=key, name=name, locator=locator, kind=kind)
            self._apply(lambda records: _upserted(records, record))

        logger.info("Added %s", key)
        return Outcome.success("File uploaded", record)

    async def delete(self, file_id: str) -> Outcome:
        """Delete the object unconditionally; confirmation is the caller's job."""
        try:
            identity = self._require_identity()
            self._check_owned(identity, file_id)
        except FileBoxError as e:
            return self._fail(DELETE_FAILED, e)

        epoch = self._epoch
        with self._busy(epoch):
            try:
                await self._store.delete(file_id)
            except FileBoxError as e:
                return self._fail(DELETE_FAILED, e)
            self._forget_orphan(identity.uid, file_id)

            if not self._still_current(epoch):
                return self._stale()
            self._apply(lambda records: _without(records, file_id))

        logger.info("Deleted %s", file_id)
        return Outcome.success("File deleted")

    async def rename(self, file_id: str, new_name: str) -> Outcome:
        """Copy the object to its new key, then delete the old one.

        The store has no atomic rename. A failure before the delete leaves
        the original untouched. If only the delete fails, both objects
        exist: the new record is added beside the old one, the old key is
        remembered, and the next ``load()`` removes it.
        """
        try:
            identity = self._require_identity()
            self._check_owned(identity, file_id)
            current = self._find(file_id)
            kind = current.kind if current else naming.classify(file_id)
            name = naming.normalize_name(self._clean_name(new_name), kind)
        except FileBoxError as e:
            return self._fail(RENAME_FAILED, e)

        if self.key_for(identity.uid, name) == file_id:
            return Outcome.success("Name unchanged", current)

        epoch = self._epoch
        with self._busy(epoch):
            try:
                target = await self._resolve_collision(identity.uid, name)
                name = target.rsplit("/", 1)[-1]
                locator = current.locator if current else await self._store.get_locator(file_id)
                data = await self._store.download(locator)
                await self._store.upload(target, data, naming.content_type_for(name))
                self._forget_orphan(identity.uid, target)
                new_locator = await self._store.get_locator(target)
            except FileBoxError as e:
                return self._fail(RENAME_FAILED, e)

            record = FileRecord(id=target, name=name, locator=new_locator, kind=kind)
            try:
                await self._store.delete(file_id)
            except NotFound:
                logger.debug("%s was already gone after copying to %s", file_id, target)
            except FileBoxError as e:
                logger.warning(
                    "Copied %s to %s but could not delete the original; "
                    "it will be removed on next load",
                    file_id, target,
                )
                self._orphans.setdefault(identity.uid, set()).add(file_id)
                if self._still_current(epoch):
                    self._apply(lambda records: _upserted(records, record))
                outcome = self._fail(RENAME_FAILED, e)
                return Outcome.failure(outcome.message, e, record)
            self._forget_orphan(identity.uid, file_id)

            if not self._still_current(epoch):
                return self._stale()
            self._apply(lambda records: _replaced(records, file_id, record))

        logger.info("Renamed %s -> %s", file_id, target)
        return Outcome.success("File renamed", record)
