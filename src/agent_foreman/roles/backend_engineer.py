"""Backend engineer perspective: API, data models, services and infrastructure."""

import re
from typing import Any, Dict, List, Literal, Optional

from pydantic import Field

from ..core.feature import CamelModel
from .product_manager import AnalysisMetadata

# (pattern, resource name) pairs; resources become /api/<name> endpoints
RESOURCE_PATTERNS = [
    (re.compile(r"auth|login|jwt|session", re.IGNORECASE), "auth"),
    (re.compile(r"user", re.IGNORECASE), "user"),
    (re.compile(r"password", re.IGNORECASE), "password"),
    (re.compile(r"token", re.IGNORECASE), "token"),
]


class APIEndpoint(CamelModel):
    method: Literal["GET", "POST", "PUT", "DELETE", "PATCH"]
    path: str
    description: str
    request_schema: Dict[str, Any] = Field(default_factory=dict)
    response_schema: Dict[str, Any] = Field(default_factory=dict)
    authentication: bool = True
    rate_limit: Optional[str] = None


class APIDesign(CamelModel):
    endpoints: List[APIEndpoint]
    base_url: str = "/api/v1"
    versioning: str = "URL path versioning"


class ModelField(CamelModel):
    name: str
    type: str
    required: bool
    unique: bool = False
    indexed: bool = False


class DataModel(CamelModel):
    name: str
    description: str
    fields: List[ModelField]
    relationships: List[str] = Field(default_factory=list)


class ServiceDef(CamelModel):
    name: str
    responsibility: str
    dependencies: List[str] = Field(default_factory=list)


class ServiceArchitecture(CamelModel):
    pattern: Literal["monolith", "microservices", "serverless", "modular"]
    services: List[ServiceDef]
    communication: str


class AuthenticationSpec(CamelModel):
    method: str
    details: str
    token_expiry: Optional[str] = None


class AuthorizationSpec(CamelModel):
    model: str
    roles: List[str]


class AuthRequirements(CamelModel):
    authentication: AuthenticationSpec
    authorization: AuthorizationSpec


class CachingStrategy(CamelModel):
    approach: str
    targets: List[str]
    ttl: str


class BackendAnalysisResult(CamelModel):
    api_design: APIDesign
    data_models: List[DataModel]
    service_architecture: ServiceArchitecture
    auth_requirements: AuthRequirements
    caching_strategy: CachingStrategy
    infrastructure_requirements: List[str]
    metadata: AnalysisMetadata


def extract_resources(requirement: str) -> List[str]:
    resources = [name for pattern, name in RESOURCE_PATTERNS if pattern.search(requirement)]
    return resources or ["feature"]


class BackendEngineerRole:
    """Rule-based backend analysis of a free-text requirement."""

    async def analyze(self, requirement: str) -> BackendAnalysisResult:
        if not requirement or not requirement.strip():
            raise ValueError("Requirement cannot be empty")

        text = requirement.lower()
        return BackendAnalysisResult(
            api_design=self._api_design(extract_resources(requirement)),
            data_models=self._data_models(text),
            service_architecture=ServiceArchitecture(
                pattern="modular",
                services=[
                    ServiceDef(name="AuthService", responsibility="Handle authentication logic",
                               dependencies=["UserRepository"]),
                    ServiceDef(name="UserService", responsibility="User management",
                               dependencies=["UserRepository", "EmailService"]),
                ],
                communication="Direct method calls (monolith) or HTTP/gRPC (microservices)",
            ),
            auth_requirements=self._auth_requirements(text),
            caching_strategy=CachingStrategy(
                approach="Cache-aside with Redis",
                targets=["User profiles", "Session data", "Frequently accessed resources"],
                ttl="5 minutes for user data, session duration for tokens",
            ),
            infrastructure_requirements=self._infrastructure(text),
            metadata=AnalysisMetadata(analyzer="BackendEngineerRole"),
        )

    @staticmethod
    def _api_design(resources: List[str]) -> APIDesign:
        endpoints = []
        for resource in resources:
            endpoints.append(APIEndpoint(
                method="POST",
                path=f"/api/{resource}",
                description=f"Create/perform {resource}",
                request_schema={"type": "object"},
                response_schema={"type": "object", "properties": {"success": {"type": "boolean"}}},
            ))
            endpoints.append(APIEndpoint(
                method="GET",
                path=f"/api/{resource}/:id",
                description=f"Get {resource} by ID",
                response_schema={"type": "object"},
            ))
        return APIDesign(endpoints=endpoints)

    @staticmethod
    def _data_models(text: str) -> List[DataModel]:
        models = []
        if "user" in text or "auth" in text:
            models.append(DataModel(
                name="User",
                description="User account model",
                fields=[
                    ModelField(name="id", type="uuid", required=True, unique=True),
                    ModelField(name="email", type="string", required=True, unique=True, indexed=True),
                    ModelField(name="passwordHash", type="string", required=True),
                    ModelField(name="createdAt", type="timestamp", required=True),
                    ModelField(name="updatedAt", type="timestamp", required=True),
                ],
                relationships=["has many Sessions"],
            ))
        if "session" in text or "token" in text:
            models.append(DataModel(
                name="Session",
                description="User session model",
                fields=[
                    ModelField(name="id", type="uuid", required=True, unique=True),
                    ModelField(name="userId", type="uuid", required=True, indexed=True),
                    ModelField(name="token", type="string", required=True, unique=True),
                    ModelField(name="expiresAt", type="timestamp", required=True),
                ],
                relationships=["belongs to User"],
            ))
        if not models:
            models.append(DataModel(
                name="Entity",
                description="Generic entity model",
                fields=[
                    ModelField(name="id", type="uuid", required=True, unique=True),
                    ModelField(name="data", type="jsonb", required=False),
                    ModelField(name="createdAt", type="timestamp", required=True),
                ],
            ))
        return models

    @staticmethod
    def _auth_requirements(text: str) -> AuthRequirements:
        jwt = "jwt" in text
        return AuthRequirements(
            authentication=AuthenticationSpec(
                method="JWT Bearer Token" if jwt else "Session-based",
                details="RS256 signed tokens" if jwt else "Server-side session storage",
                token_expiry="15 minutes (access), 7 days (refresh)" if jwt else None,
            ),
            authorization=AuthorizationSpec(model="RBAC", roles=["admin", "user", "guest"]),
        )

    @staticmethod
    def _infrastructure(text: str) -> List[str]:
        infra = [
            "PostgreSQL database for persistent storage",
            "Redis for caching and session storage",
            "Load balancer for horizontal scaling",
        ]
        if "password" in text:
            infra.append("bcrypt/argon2 for password hashing")
        return infra
