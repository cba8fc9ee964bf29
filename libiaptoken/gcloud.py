import logging
from typing import Any, Optional

import googleapiclient.discovery

from libiaptoken.errors import ensure_found

logger = logging.getLogger(__name__)


def get_project_number(project_id: str, credentials: Optional[Any] = None) -> str:
    """
    Looks up the numeric id of `project_id` through Cloud Resource Manager.
    The API returns the project name as `projects/<number>`.
    """
    crm_resource = googleapiclient.discovery.build(
        "cloudresourcemanager", "v3", credentials=credentials, cache_discovery=False
    )
    project = crm_resource.projects().get(name=f"projects/{project_id}").execute()

    project_number = ensure_found(
        (project.get("name") or "").split("/")[-1],
        "ProjectsClient.project.name.projectNumber",
        project,
    )
    logger.debug("Project %s has number %s", project_id, project_number)
    return project_number
