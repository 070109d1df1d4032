"""Static directory provider: directories registered up front, per organization."""

from taskboard.domain.entities.organization import OrganizationDirectory


class StaticDirectoryProvider:
    """Returns the registered directory for an organization, or an empty one."""

    def __init__(self, directories: dict[str, OrganizationDirectory] | None = None) -> None:
        self._directories = dict(directories or {})

    def register(self, organization_id: str, directory: OrganizationDirectory) -> None:
        self._directories[organization_id] = directory

    async def load(self, organization_id: str) -> OrganizationDirectory:
        return self._directories.get(organization_id, OrganizationDirectory())
