from contractoros.domain.project import Project
from contractoros.repositories.base import BaseRepository


class ProjectRepository(BaseRepository[Project]):
    model = Project
