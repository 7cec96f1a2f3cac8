from pydantic import BaseModel


class DeploymentRecord(BaseModel):
    """The single tracked deployment, as stored in the cache."""

    id: str
    status: str
    created: str | int | None = None

    @property
    def is_building(self) -> bool:
        return self.status == "BUILDING"
