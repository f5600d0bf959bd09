"""
Application manager: business rules and authorization around the repositories.

Manifesto:
    The repositories are dumb mappers.  Every cross-entity invariant lives
    here: restriction consistency, one initial release per create, release
    version uniqueness, lifecycle transitions, and role-based visibility.

    - **Explicit caller:** every operation takes ``(tenant_id, username)``
    - **Injected collaborators:** database, role resolver, authorization
      checker and device-type lookup are passed in once
    - **One scope per operation:** a connection is opened and released per
      call; multi-statement writes run in one transaction that rolls back
      on any failure

Architecture:
    ::

        caller ──► ApplicationManager
                     ├── RoleResolver / AuthorizationChecker  (identity store)
                     ├── DeviceTypeLookup
                     └── Database.scope() ──► TransactionScope
                              ├── ApplicationRepository
                              ├── VisibilityRepository
                              ├── ReleaseRepository
                              └── LifecycleRepository

Visibility rule:
    Administrators see everything.  Anyone else sees an application when
    its unrestricted-role list is empty or shares a role with the caller.
    Hidden applications look exactly like missing ones (``None`` from
    reads, ``NotFoundError`` from operations that need the application).

Tags:
    manager, orchestration, authorization, transactions, appcatalog
"""

from __future__ import annotations

import uuid
from contextlib import nullcontext
from dataclasses import replace

from appcatalog.catalog.lifecycle import (
    LifecycleState,
    LifecycleStateName,
    is_active,
    parse_state,
    validate_transition,
)
from appcatalog.catalog.locks import KeyedLock
from appcatalog.catalog.models import (
    Application,
    ApplicationList,
    ApplicationRelease,
    Filter,
    Pagination,
)
from appcatalog.catalog.repositories import (
    ApplicationRepository,
    LifecycleRepository,
    ReleaseRepository,
    VisibilityRepository,
)
from appcatalog.core.errors import (
    AuthorizationBackendError,
    CatalogError,
    DuplicateKeyError,
    NotFoundError,
    PersistenceError,
    ValidationError,
)
from appcatalog.core.logging import LogContext, get_logger
from appcatalog.core.protocols import AuthorizationChecker, DeviceTypeLookup, RoleResolver
from appcatalog.core.settings import CatalogSettings, get_settings
from appcatalog.core.timestamps import utc_now_iso
from appcatalog.core.transaction import Database, TransactionScope

logger = get_logger(__name__)


class ApplicationManager:
    """Create, read, list, edit and delete applications and their releases."""

    def __init__(
        self,
        database: Database,
        roles: RoleResolver,
        authorizer: AuthorizationChecker,
        device_types: DeviceTypeLookup,
        *,
        settings: CatalogSettings | None = None,
        locks: KeyedLock | None = None,
    ) -> None:
        self._database = database
        self._roles = roles
        self._authorizer = authorizer
        self._device_types = device_types
        self._settings = settings or get_settings()
        self._locks = locks or KeyedLock()

    # ------------------------------------------------------------------
    # Repositories bound to a scope
    # ------------------------------------------------------------------

    @staticmethod
    def _applications(scope: TransactionScope) -> ApplicationRepository:
        return ApplicationRepository(scope.connection, scope.dialect)

    @staticmethod
    def _visibility(scope: TransactionScope) -> VisibilityRepository:
        return VisibilityRepository(scope.connection, scope.dialect)

    @staticmethod
    def _releases(scope: TransactionScope) -> ReleaseRepository:
        return ReleaseRepository(scope.connection, scope.dialect)

    @staticmethod
    def _lifecycle(scope: TransactionScope) -> LifecycleRepository:
        return LifecycleRepository(scope.connection, scope.dialect)

    # ------------------------------------------------------------------
    # Identity
    # ------------------------------------------------------------------

    def _roles_of(self, username: str, tenant_id: int) -> set[str]:
        try:
            return set(self._roles.roles_of(username, tenant_id))
        except CatalogError:
            raise
        except Exception as exc:
            raise AuthorizationBackendError(
                f"Error occurred while getting the role list of user {username}", cause=exc
            ).with_context(tenant_id=tenant_id, username=username) from exc

    def is_admin_user(self, username: str, tenant_id: int) -> bool:
        """Whether the caller holds the administrative permission."""
        try:
            return bool(
                self._authorizer.is_authorized(username, tenant_id, self._settings.admin_permission)
            )
        except CatalogError:
            raise
        except Exception as exc:
            raise AuthorizationBackendError(
                f"Error occurred while checking the permission of user {username}", cause=exc
            ).with_context(tenant_id=tenant_id, username=username) from exc

    @staticmethod
    def _allows(unrestricted_roles: list[str], caller_roles: set[str]) -> bool:
        return not unrestricted_roles or bool(caller_roles.intersection(unrestricted_roles))

    def is_user_allowable(self, unrestricted_roles: list[str], username: str, tenant_id: int) -> bool:
        """Whether a caller's roles satisfy an unrestricted-role list."""
        if not unrestricted_roles:
            return True
        return self._allows(unrestricted_roles, self._roles_of(username, tenant_id))

    def _can_view(self, application: Application, username: str, tenant_id: int) -> bool:
        if self.is_admin_user(username, tenant_id):
            return True
        return self.is_user_allowable(application.unrestricted_roles, username, tenant_id)

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    @staticmethod
    def _validate_create(
        application: Application | None, tenant_id: int | None, username: str | None
    ) -> ApplicationRelease:
        if application is None:
            raise ValidationError("Application payload cannot be empty")
        if not application.name or not application.name.strip():
            raise ValidationError("Application name cannot be empty")
        if not username or tenant_id is None:
            raise ValidationError("Username and tenant Id cannot be empty")
        if not application.category:
            raise ValidationError("Application category can't be empty")
        if not application.type:
            raise ValidationError("Application type can't be empty")
        if not application.releases:
            raise ValidationError("Application creating payload should contain one application release")
        if len(application.releases) > 1:
            raise ValidationError(
                "Invalid payload. Application creating payload should contain one application "
                "release, but the payload contains more than one"
            )
        release = application.releases[0]
        if not release.version:
            raise ValidationError("Application release version cannot be empty")
        return release

    def _name_taken(
        self,
        applications: ApplicationRepository,
        name: str,
        tenant_id: int,
        exclude_id: int | None = None,
    ) -> bool:
        """Duplicate check through the listing path (full, case-insensitive match)."""
        matches, total = applications.list_applications(
            Filter(search_query=name, full_match=True, limit=2, offset=0), tenant_id
        )
        if exclude_id is None:
            return total > 0
        return any(match.id != exclude_id for match in matches)

    def _resolve_device_type(self, type: str, tenant_id: int, username: str) -> int:
        device_type = self._device_types.device_type_for(type, tenant_id)
        if device_type is None:
            logger.warning("device_type_not_found", device_type=type)
            raise ValidationError(f"Invalid device type is found for application type {type}").with_context(
                tenant_id=tenant_id, username=username
            )
        return device_type.id

    def _insert_release(
        self,
        scope: TransactionScope,
        release: ApplicationRelease,
        application_id: int,
        tenant_id: int,
        username: str,
    ) -> ApplicationRelease:
        """Release row plus its CREATED lifecycle record (caller owns the transaction)."""
        now = utc_now_iso()
        release.uuid = str(uuid.uuid4())
        release.created_by = username
        release.created_at = now
        release.published_by = None
        release.published_at = None
        self._releases(scope).create_release(release, application_id, tenant_id)
        self._lifecycle(scope).add_state(release.id, LifecycleStateName.CREATED.value, username, now)
        release.current_state = LifecycleStateName.CREATED.value
        return release

    def create_application(self, application: Application, tenant_id: int, username: str) -> Application:
        """Create an application with exactly one initial release.

        Everything after the application insert runs in the same
        transaction: a failure writing tags, roles, the release or its
        lifecycle record leaves no application row behind.

        Raises:
            ValidationError: Missing fields, duplicate name, unknown device
                type, or anything other than exactly one release.
            PersistenceError: Storage failure (after rollback).
        """
        release = self._validate_create(application, tenant_id, username)
        with LogContext(tenant_id=tenant_id, username=username, operation="create_application"):
            application.tenant_id = tenant_id
            application.created_by = username
            if application.is_free is None:
                application.is_free = True
            if application.is_restricted is None:
                application.is_restricted = False
            if application.is_restricted and not application.unrestricted_roles:
                logger.info("restriction_demoted", name=application.name)
                application.is_restricted = False

            # Resolved before a scope is held: the lookup may open its own.
            device_type_id = self._resolve_device_type(application.type, tenant_id, username)

            with self._locks.hold((tenant_id, application.name.strip().lower())):
                with self._database.scope() as scope:
                    applications = self._applications(scope)
                    if self._name_taken(applications, application.name, tenant_id):
                        raise ValidationError(
                            f"Already an application registered with same name - {application.name}"
                        ).with_context(tenant_id=tenant_id, username=username)

                    try:
                        with scope.transaction():
                            application_id = applications.create_application(application, device_type_id)
                            if application_id == -1:
                                raise PersistenceError("Application creation failed: no id was generated")
                            application.id = application_id
                            application.device_type_id = device_type_id
                            if application.tags:
                                applications.add_tags(application.tags, application_id, tenant_id)
                            if application.is_restricted and application.unrestricted_roles:
                                self._visibility(scope).add_unrestricted_roles(
                                    application.unrestricted_roles, application_id, tenant_id
                                )
                            created = self._insert_release(scope, release, application_id, tenant_id, username)
                    except DuplicateKeyError as exc:
                        application.id = None
                        raise ValidationError(
                            f"Already an application registered with same name - {application.name}",
                            cause=exc,
                        ).with_context(tenant_id=tenant_id, username=username) from exc
                    except CatalogError:
                        application.id = None
                        raise

            application.releases = [created]
            if not application.is_restricted:
                application.unrestricted_roles = []
            logger.info("application_created", application_id=application.id, release_uuid=created.uuid)
            return application

    def create_release(
        self,
        application_id: int,
        release: ApplicationRelease,
        tenant_id: int,
        username: str,
    ) -> ApplicationRelease:
        """Add a release to an existing application the caller can see."""
        if release is None or not release.version:
            raise ValidationError("Application release version cannot be empty")
        with LogContext(tenant_id=tenant_id, username=username, application_id=application_id):
            with self._locks.hold((tenant_id, "release", application_id)):
                with self._database.scope() as scope:
                    application = self._applications(scope).get_application_by_id(application_id, tenant_id)
                    if application is None or not self._can_view(application, username, tenant_id):
                        raise NotFoundError(f"Application {application_id} does not exist").with_context(
                            tenant_id=tenant_id, application_id=application_id
                        )
                    with scope.transaction():
                        if self._releases(scope).version_exists(application_id, release.version):
                            raise ValidationError(
                                f"Release version {release.version} already exists for application {application_id}"
                            ).with_context(tenant_id=tenant_id, application_id=application_id)
                        created = self._insert_release(scope, release, application_id, tenant_id, username)
            logger.info("release_created", release_uuid=created.uuid, version=created.version)
            return created

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def _active_releases(
        self, scope: TransactionScope, application: Application, tenant_id: int
    ) -> list[ApplicationRelease]:
        releases = self._releases(scope).get_releases(application.name, application.type, tenant_id)
        return [r for r in releases if is_active(r.current_state)]

    def get_applications(self, filter: Filter, tenant_id: int, username: str) -> ApplicationList:
        """One page of visible applications with their active releases.

        ``pagination.count`` comes from the unfiltered query, so a
        non-admin page may hold fewer rows than the count suggests.
        """
        if filter is None:
            raise ValidationError("Filter must not be null")
        if filter.limit > self._settings.max_page_limit:
            filter = replace(filter, limit=self._settings.max_page_limit)

        with LogContext(tenant_id=tenant_id, username=username, operation="get_applications"):
            admin = self.is_admin_user(username, tenant_id)
            caller_roles = set() if admin else self._roles_of(username, tenant_id)

            with self._database.scope() as scope:
                applications, total = self._applications(scope).list_applications(filter, tenant_id)
                if not admin:
                    applications = [a for a in applications if self._allows(a.unrestricted_roles, caller_roles)]
                for application in applications:
                    application.releases = self._active_releases(scope, application, tenant_id)

            pagination = Pagination(limit=filter.limit, offset=filter.offset, count=total, size=len(applications))
            logger.debug("applications_listed", count=total, size=pagination.size)
            return ApplicationList(applications=applications, pagination=pagination)

    def get_application(self, name: str, type: str, tenant_id: int, username: str) -> Application | None:
        """Application by name and type, or ``None`` if absent or hidden."""
        with self._database.scope() as scope:
            application = self._applications(scope).get_application(name, type, tenant_id)
            if application is None or not self._can_view(application, username, tenant_id):
                return None
            application.releases = self._active_releases(scope, application, tenant_id)
            return application

    def get_application_by_id(self, application_id: int, tenant_id: int, username: str) -> Application | None:
        """Application by id, or ``None`` if absent or hidden."""
        with self._database.scope() as scope:
            application = self._applications(scope).get_application_by_id(application_id, tenant_id)
            if application is None or not self._can_view(application, username, tenant_id):
                return None
            application.releases = self._active_releases(scope, application, tenant_id)
            return application

    def get_application_by_release(self, release_uuid: str, tenant_id: int, username: str) -> Application | None:
        """Owning application carrying only the matched release."""
        with self._database.scope() as scope:
            application = self._applications(scope).get_application_by_release(release_uuid, tenant_id)
        if application is None or not self._can_view(application, username, tenant_id):
            return None
        return application

    def get_releases(self, application_id: int, tenant_id: int, username: str) -> list[ApplicationRelease]:
        """Releases whose latest lifecycle state is not REMOVED.

        Raises:
            NotFoundError: Application absent or hidden from the caller.
        """
        application = self.get_application_by_id(application_id, tenant_id, username)
        if application is None:
            raise NotFoundError(f"Application with id {application_id} does not exist").with_context(
                tenant_id=tenant_id, username=username, application_id=application_id
            )
        return application.releases

    def application_exists(self, name: str, type: str, tenant_id: int) -> bool:
        with self._database.scope() as scope:
            return self._applications(scope).application_exists(name, type, tenant_id)

    def verify_application_existence_by_id(self, application_id: int, tenant_id: int) -> bool:
        with self._database.scope() as scope:
            return self._applications(scope).verify_application_existence_by_id(application_id, tenant_id)

    def get_uuid_of_latest_release(self, application_id: int) -> str | None:
        """UUID of the newest release whose current state is PUBLISHED."""
        with self._database.scope() as scope:
            return self._applications(scope).get_uuid_of_latest_release(application_id)

    # ------------------------------------------------------------------
    # Edit / delete (administrators only)
    # ------------------------------------------------------------------

    def _require_admin(self, username: str, tenant_id: int, application_id: int | None) -> None:
        if not self.is_admin_user(username, tenant_id):
            raise NotFoundError("Application does not exist").with_context(
                tenant_id=tenant_id, username=username, application_id=application_id
            )

    def edit_application(self, application: Application, tenant_id: int, username: str) -> Application:
        """Apply the supplied (non-``None``) fields to a stored application.

        A non-empty ``unrestricted_roles`` replaces the stored allow-list;
        an empty one leaves it untouched.  Turning restriction off removes
        the allow-list; turning it on without any roles is demoted.  A new
        name must not clash with another application (full, case-insensitive
        match) and a supplied type rebinds the device type.
        """
        if application is None:
            raise ValidationError("Application payload cannot be empty")
        if application.id is None and not (application.name and application.type):
            raise ValidationError("Application id, or name and type, are required to edit an application")
        if application.name is not None and not application.name.strip():
            raise ValidationError("Application name cannot be empty")
        self._require_admin(username, tenant_id, application.id)

        with LogContext(tenant_id=tenant_id, username=username, operation="edit_application"):
            # Resolved before a scope is held: the lookup may open its own.
            device_type_id = None
            if application.type:
                device_type_id = self._resolve_device_type(application.type, tenant_id, username)
            application = replace(application, device_type_id=device_type_id)

            name_lock = (
                self._locks.hold((tenant_id, application.name.strip().lower()))
                if application.name
                else nullcontext()
            )
            with name_lock, self._database.scope() as scope:
                applications = self._applications(scope)
                visibility = self._visibility(scope)
                try:
                    with scope.transaction():
                        if application.id is not None:
                            existing = applications.get_application_by_id(application.id, tenant_id)
                        else:
                            existing = applications.get_application(application.name, application.type, tenant_id)
                        if existing is None:
                            raise NotFoundError("Tried to update an application which does not exist").with_context(
                                tenant_id=tenant_id, application_id=application.id
                            )
                        if application.name and self._name_taken(
                            applications, application.name, tenant_id, exclude_id=existing.id
                        ):
                            raise ValidationError(
                                f"Already an application registered with same name - {application.name}"
                            ).with_context(tenant_id=tenant_id, username=username)

                        roles_after = application.unrestricted_roles or existing.unrestricted_roles
                        if application.is_restricted and not roles_after:
                            logger.info("restriction_demoted", application_id=existing.id)
                            application = replace(application, is_restricted=False)

                        updated = applications.edit_application(replace(application, id=existing.id), tenant_id)

                        if not updated.is_restricted and existing.unrestricted_roles:
                            visibility.delete_unrestricted_roles(updated.id, tenant_id)
                        elif updated.is_restricted and application.unrestricted_roles:
                            visibility.delete_unrestricted_roles(updated.id, tenant_id)
                            visibility.add_unrestricted_roles(application.unrestricted_roles, updated.id, tenant_id)

                        result = applications.get_application_by_id(updated.id, tenant_id)
                except DuplicateKeyError as exc:
                    raise ValidationError(
                        f"Already an application registered with same name - {application.name}", cause=exc
                    ).with_context(tenant_id=tenant_id, username=username) from exc

                result.releases = self._active_releases(scope, result, tenant_id)
            logger.info("application_edited", application_id=result.id)
            return result

    def delete_application(self, application_id: int, tenant_id: int, username: str) -> None:
        """Remove the application with its lifecycle history, releases, tags and roles."""
        self._require_admin(username, tenant_id, application_id)
        with LogContext(tenant_id=tenant_id, username=username, application_id=application_id):
            with self._database.scope() as scope:
                applications = self._applications(scope)
                with scope.transaction():
                    if not applications.verify_application_existence_by_id(application_id, tenant_id):
                        raise NotFoundError(f"Application with id {application_id} does not exist").with_context(
                            tenant_id=tenant_id, application_id=application_id
                        )
                    self._lifecycle(scope).delete_states_for_application(application_id)
                    self._releases(scope).delete_releases(application_id)
                    applications.delete_tags(application_id)
                    self._visibility(scope).delete_unrestricted_roles(application_id, tenant_id)
                    applications.delete_application(application_id)
            logger.info("application_deleted")

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def _visible_release(
        self, scope: TransactionScope, release_uuid: str, tenant_id: int, username: str
    ) -> ApplicationRelease:
        found = self._releases(scope).get_release(release_uuid, tenant_id)
        if found is not None:
            release, application_id = found
            application = self._applications(scope).get_application_by_id(application_id, tenant_id)
            if application is not None and self._can_view(application, username, tenant_id):
                return release
        raise NotFoundError(f"Release {release_uuid} does not exist").with_context(
            tenant_id=tenant_id, username=username, release_uuid=release_uuid
        )

    def change_lifecycle(
        self,
        release_uuid: str,
        new_state: str | LifecycleStateName,
        tenant_id: int,
        username: str,
    ) -> LifecycleState:
        """Append a lifecycle record after checking the transition is legal."""
        target = parse_state(new_state)
        with LogContext(tenant_id=tenant_id, username=username, release_uuid=release_uuid):
            with self._database.scope() as scope:
                release = self._visible_release(scope, release_uuid, tenant_id, username)
                lifecycle = self._lifecycle(scope)
                with scope.transaction():
                    latest = lifecycle.latest_state(release.id)
                    validate_transition(latest.current_state if latest else None, target)
                    now = utc_now_iso()
                    record = lifecycle.add_state(release.id, target.value, username, now)
                    if target is LifecycleStateName.PUBLISHED:
                        self._releases(scope).mark_published(release.id, username, now)
            logger.info("lifecycle_changed", state=target.value)
            return record

    def get_lifecycle_states(self, release_uuid: str, tenant_id: int, username: str) -> list[LifecycleState]:
        """Full lifecycle history of a release, oldest first."""
        with self._database.scope() as scope:
            release = self._visible_release(scope, release_uuid, tenant_id, username)
            return self._lifecycle(scope).get_states(release.id)


__all__ = ["ApplicationManager"]
