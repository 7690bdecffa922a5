"""Project posting, search and lifecycle management."""

import logging
from collections import Counter
from datetime import datetime
from typing import Optional

from ..errors import ForbiddenError, NotFoundError, ValidationError
from ..models.project import (
    Budget, BudgetType, Project, ProjectStatus, ProjectVisibility, Timeline, TimelineUnit,
)
from ..models.proposal import Proposal, ProposalStatus
from ..models.user import User, UserRole
from ..storage import JsonStore
from .common import get_user, paginate, require_role

logger = logging.getLogger(__name__)


SORT_FIELDS = {
    "newest": (lambda p: p.created_at, True),
    "oldest": (lambda p: p.created_at, False),
    "budget_high": (lambda p: p.budget.max, True),
    "budget_low": (lambda p: p.budget.min, False),
    "deadline": (lambda p: p.application_deadline or datetime.max, False),
    "popular": (lambda p: p.view_count, True),
}


def build_budget(data: dict) -> Budget:
    try:
        budget = Budget(
            type=BudgetType(data.get("type", "fixed")),
            min=float(data.get("min", 0)),
            max=float(data.get("max", 0)),
        )
    except (TypeError, ValueError):
        raise ValidationError("Invalid budget")

    if budget.min < 0 or budget.max <= 0:
        raise ValidationError("Budget amounts must be positive")
    if not budget.is_valid:
        raise ValidationError("Minimum budget cannot exceed maximum budget")
    return budget


def build_timeline(data: dict) -> Timeline:
    try:
        timeline = Timeline(duration=int(data.get("duration", 1)), unit=TimelineUnit(data.get("unit", "weeks")))
    except (TypeError, ValueError):
        raise ValidationError("Invalid timeline")

    if timeline.duration < 1:
        raise ValidationError("Timeline duration must be at least 1")
    return timeline


class ProjectManager:
    """Manages project postings."""

    COLLECTION = "projects"

    def __init__(self, store: JsonStore):
        self.store = store

    def get_project(self, project_id: str, viewer_id: Optional[str] = None) -> Project:
        """Get a project, counting the view when someone other than the owner looks."""
        with self.store.lock:
            project = self.store.get(self.COLLECTION, Project, project_id)
            if not project:
                raise NotFoundError("Project not found")

            if viewer_id and viewer_id != project.client_id:
                project.view_count += 1
                self.store.update(self.COLLECTION, project)

        return project

    def _owned(self, project_id: str, user: User) -> Project:
        project = self.store.get(self.COLLECTION, Project, project_id)
        if not project:
            raise NotFoundError("Project not found")
        if project.client_id != user.id and not user.is_admin:
            raise ForbiddenError("You can only manage your own projects")
        return project

    def create_project(
        self,
        client: User,
        title: str,
        description: str,
        category: str,
        budget: dict,
        timeline: dict,
        skills: list[str] = None,
        tags: list[str] = None,
        visibility: str = "public",
        is_urgent: bool = False,
        application_deadline: Optional[datetime] = None,
        publish: bool = True,
        attachments: list[dict] = None,
    ) -> Project:
        """Create a new project posting."""
        require_role(client, UserRole.CLIENT, message="Only clients can post projects")

        if not title.strip() or not description.strip():
            raise ValidationError("Title and description are required")
        if application_deadline and application_deadline < datetime.utcnow():
            raise ValidationError("Application deadline must be in the future")

        project = Project(
            title=title.strip(),
            description=description.strip(),
            client_id=client.id,
            category=category,
            skills=skills or [],
            tags=tags or [],
            budget=build_budget(budget),
            timeline=build_timeline(timeline),
            status=ProjectStatus.DRAFT,
            visibility=ProjectVisibility(visibility),
            is_urgent=is_urgent,
            application_deadline=application_deadline,
            attachments=attachments or [],
        )
        if publish:
            project.publish()

        self.store.insert(self.COLLECTION, project)
        logger.info("Project %s created by %s", project.id, client.id)
        return project

    def list_projects(
        self,
        status: Optional[ProjectStatus] = ProjectStatus.OPEN,
        category: Optional[str] = None,
        skills: Optional[list[str]] = None,
        budget_type: Optional[BudgetType] = None,
        budget_min: Optional[float] = None,
        budget_max: Optional[float] = None,
        search: Optional[str] = None,
        featured: Optional[bool] = None,
        urgent: Optional[bool] = None,
        client_id: Optional[str] = None,
        sort: str = "newest",
        page: int = 1,
        limit: int = 20,
    ) -> dict:
        """List projects with optional filtering and pagination."""
        wanted_skills = {s.lower() for s in skills or []}
        proposal_counts = Counter(
            p.project_id for p in self.store.load("proposals", Proposal)
            if p.status != ProposalStatus.WITHDRAWN
        )

        filtered = []
        for project in self.store.load(self.COLLECTION, Project):
            # Status filter
            if status and project.status != status:
                continue

            # Public listing excludes invite-only postings unless browsing one client
            if not client_id and project.visibility == ProjectVisibility.INVITE_ONLY:
                continue

            if client_id and project.client_id != client_id:
                continue

            if category and project.category.lower() != category.lower():
                continue

            # Skills filter: any overlap
            if wanted_skills and not wanted_skills & {s.lower() for s in project.skills}:
                continue

            if budget_type and project.budget.type != budget_type:
                continue

            # Budget range: project range must overlap the requested one
            if budget_min is not None and project.budget.max < budget_min:
                continue
            if budget_max is not None and project.budget.min > budget_max:
                continue

            if search and not project.matches_search(search):
                continue

            if featured is not None and project.is_featured != featured:
                continue
            if urgent is not None and project.is_urgent != urgent:
                continue

            filtered.append(project)

        key, reverse = SORT_FIELDS.get(sort, SORT_FIELDS["newest"])
        filtered.sort(key=key, reverse=reverse)

        result = paginate(filtered, page, limit)
        result["items"] = [
            {**p.to_dict(), "proposal_count": proposal_counts.get(p.id, 0)}
            for p in result["items"]
        ]
        return result

    def update_project(self, project_id: str, user: User, changes: dict) -> Project:
        """Owner edits while the project is not yet under way."""
        with self.store.lock:
            project = self._owned(project_id, user)
            if not project.is_editable:
                raise ValidationError(f"Cannot edit a project that is {project.status.value}")

            for key in ("title", "description", "category", "skills", "tags", "is_urgent", "attachments"):
                if key in changes and changes[key] is not None:
                    setattr(project, key, changes[key])
            if changes.get("budget"):
                project.budget = build_budget(changes["budget"])
            if changes.get("timeline"):
                project.timeline = build_timeline(changes["timeline"])
            if changes.get("visibility"):
                project.visibility = ProjectVisibility(changes["visibility"])
            if "application_deadline" in changes:
                project.application_deadline = changes["application_deadline"]
            if changes.get("publish"):
                project.publish()

            project.updated_at = datetime.utcnow()
            self.store.update(self.COLLECTION, project)

        return project

    def delete_project(self, project_id: str, user: User) -> None:
        with self.store.lock:
            project = self._owned(project_id, user)

            accepted = any(
                p.project_id == project_id and p.status == ProposalStatus.ACCEPTED
                for p in self.store.load("proposals", Proposal)
            )
            if accepted or project.status == ProjectStatus.IN_PROGRESS:
                raise ValidationError("Cannot delete a project with an accepted proposal")

            self.store.delete(self.COLLECTION, project_id)

        logger.info("Project %s deleted by %s", project_id, user.id)

    def toggle_status(self, project_id: str, user: User) -> Project:
        """Pause or resume accepting proposals."""
        with self.store.lock:
            project = self._owned(project_id, user)
            if not project.toggle_hold():
                raise ValidationError(f"Cannot toggle a project that is {project.status.value}")
            self.store.update(self.COLLECTION, project)

        return project

    def set_flags(self, project_id: str, featured: Optional[bool] = None, urgent: Optional[bool] = None) -> Project:
        """Admin curation of featured and urgent flags."""
        with self.store.lock:
            project = self.store.get(self.COLLECTION, Project, project_id)
            if not project:
                raise NotFoundError("Project not found")
            if featured is not None:
                project.is_featured = featured
            if urgent is not None:
                project.is_urgent = urgent
            self.store.update(self.COLLECTION, project)
        return project

    def mark_completed(self, project_id: str) -> None:
        with self.store.lock:
            project = self.store.get(self.COLLECTION, Project, project_id)
            if project and project.complete():
                self.store.update(self.COLLECTION, project)

    def categories(self) -> list[dict]:
        """Categories of open projects with counts."""
        counts = Counter(
            p.category for p in self.store.load(self.COLLECTION, Project)
            if p.status == ProjectStatus.OPEN and p.category
        )
        return [{"category": name, "count": count} for name, count in counts.most_common()]

    def get_client_stats(self, client_id: str) -> dict:
        get_user(self.store, client_id)
        projects = [p for p in self.store.load(self.COLLECTION, Project) if p.client_id == client_id]
        ids = {p.id for p in projects}
        proposals = [p for p in self.store.load("proposals", Proposal) if p.project_id in ids]

        return {
            "total_projects": len(projects),
            "by_status": dict(Counter(p.status.value for p in projects)),
            "total_proposals": len(proposals),
            "total_views": sum(p.view_count for p in projects),
        }

    def get_statistics(self) -> dict:
        """Get project statistics."""
        projects = self.store.load(self.COLLECTION, Project)
        return {
            "total": len(projects),
            "by_status": dict(Counter(p.status.value for p in projects)),
            "by_category": dict(Counter(p.category for p in projects if p.category)),
            "featured": sum(1 for p in projects if p.is_featured),
            "urgent": sum(1 for p in projects if p.is_urgent),
        }
