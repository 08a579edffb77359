"""Frontend engineer perspective: flows, components, state and API calls."""

import re
from typing import Dict, List, Literal, Optional

from pydantic import Field

from ..core.feature import CamelModel
from .product_manager import AnalysisMetadata

FEATURE_PATTERNS = [
    re.compile(p, re.IGNORECASE)
    for p in (
        r"login",
        r"registration|register|signup|sign up",
        r"password reset|reset password|forgot password",
        r"authentication|auth",
        r"dashboard",
        r"profile",
        r"settings",
        r"search",
    )
]
MAX_FEATURES = 5

FORM_HINTS = ("form", "input", "login", "register")

HttpMethod = Literal["GET", "POST", "PUT", "DELETE", "PATCH"]


class UserFlowStep(CamelModel):
    order: int
    action: str
    element: str
    expected_result: str


class UserFlow(CamelModel):
    name: str
    description: str
    steps: List[UserFlowStep]


class UIUXAnalysis(CamelModel):
    user_flows: List[UserFlow]
    interaction_patterns: List[str]
    design_principles: List[str]


class ComponentProp(CamelModel):
    name: str
    type: str
    required: bool
    description: Optional[str] = None


class ComponentDef(CamelModel):
    name: str
    type: Literal["page", "container", "presentational", "layout", "hook"]
    description: str
    props: List[ComponentProp] = Field(default_factory=list)
    children: List[str] = Field(default_factory=list)


class FileStructure(CamelModel):
    base_path: str
    directories: List[str]


class ComponentArchitecture(CamelModel):
    hierarchy: List[ComponentDef]
    shared_components: List[str]
    file_structure: FileStructure


class LocalStateSpec(CamelModel):
    component: str
    state_name: str
    type: str
    initial_value: str


class GlobalStoreSpec(CamelModel):
    name: str
    shape: Dict[str, str]
    actions: List[str]
    selectors: List[str]


class StateManagementSpec(CamelModel):
    local_state: List[LocalStateSpec]
    global_state: List[GlobalStoreSpec]
    recommended_library: str


class FrontendEndpoint(CamelModel):
    path: str
    method: HttpMethod
    description: str
    request_type: str
    response_type: str


class ErrorHandlingSpec(CamelModel):
    strategies: List[str]
    fallback_ui: str


class APIIntegration(CamelModel):
    endpoints: List[FrontendEndpoint]
    error_handling: ErrorHandlingSpec
    fetching_pattern: str


class BreakpointSpec(CamelModel):
    name: str
    min_width: int
    max_width: Optional[int] = None
    layout_strategy: str


class ResponsiveDesignSpec(CamelModel):
    breakpoints: List[BreakpointSpec]
    mobile_considerations: List[str]


class KeyboardNavigationSpec(CamelModel):
    requirements: List[str]
    focus_order: List[str]


class FormAccessibilitySpec(CamelModel):
    label_requirements: List[str]
    error_announcement: str
    validation_feedback: str


class AccessibilitySpec(CamelModel):
    wcag_level: Literal["A", "AA", "AAA"] = "AA"
    aria_requirements: List[str]
    keyboard_navigation: KeyboardNavigationSpec
    form_accessibility: Optional[FormAccessibilitySpec] = None


class FrontendAnalysisResult(CamelModel):
    ui_ux_analysis: UIUXAnalysis
    component_architecture: ComponentArchitecture
    state_management: StateManagementSpec
    api_integration: APIIntegration
    responsive_design: ResponsiveDesignSpec
    accessibility: AccessibilitySpec
    metadata: AnalysisMetadata


def extract_features(requirement: str) -> List[str]:
    """UI feature names mentioned in a requirement, e.g. ``["login", "dashboard"]``."""
    features: List[str] = []
    for pattern in FEATURE_PATTERNS:
        match = pattern.search(requirement)
        if not match:
            continue
        name = re.sub(r"\s+", "-", match.group(0).lower())
        name = re.sub(r"signup|sign-up", "registration", name)
        name = re.sub(r"forgot-password|reset-password", "password-reset", name)
        if name not in features:
            features.append(name)

    if not features:
        long_words = [w for w in requirement.split() if len(w) > 4]
        features.append(long_words[0].lower() if long_words else "feature")
    return features[:MAX_FEATURES]


def capitalize(name: str) -> str:
    """``password-reset`` -> ``PasswordReset``."""
    return "".join(part[:1].upper() + part[1:] for part in name.split("-"))


class FrontendEngineerRole:
    """Rule-based frontend analysis of a free-text requirement."""

    async def analyze(self, requirement: str) -> FrontendAnalysisResult:
        if not requirement or not requirement.strip():
            raise ValueError("Requirement cannot be empty")

        features = extract_features(requirement)
        architecture = self._component_architecture(features)
        return FrontendAnalysisResult(
            ui_ux_analysis=self._ui_ux(requirement, features),
            component_architecture=architecture,
            state_management=self._state_management(requirement, architecture),
            api_integration=self._api_integration(features),
            responsive_design=self._responsive_design(),
            accessibility=self._accessibility(requirement),
            metadata=AnalysisMetadata(analyzer="FrontendEngineerRole"),
        )

    def _ui_ux(self, requirement: str, features: List[str]) -> UIUXAnalysis:
        flows = [
            UserFlow(
                name=f"{capitalize(f)} Flow",
                description=f"User flow for {f} functionality",
                steps=[
                    UserFlowStep(order=1, action=f"Navigate to {f} page", element="Navigation/Link",
                                 expected_result=f"{f} page is displayed"),
                    UserFlowStep(order=2, action=f"Fill {f} form", element="Form inputs",
                                 expected_result="Form accepts valid input"),
                    UserFlowStep(order=3, action=f"Submit {f} form", element="Submit button",
                                 expected_result="Form is submitted successfully"),
                    UserFlowStep(order=4, action="View confirmation", element="Success message/modal",
                                 expected_result="Success confirmation is displayed"),
                ],
            )
            for f in features
        ]
        return UIUXAnalysis(
            user_flows=flows,
            interaction_patterns=self._interaction_patterns(requirement),
            design_principles=[
                "Progressive disclosure - show only relevant information",
                "Immediate feedback - provide visual feedback for actions",
                "Error prevention - validate input before submission",
                "Clear hierarchy - organize content by importance",
            ],
        )

    @staticmethod
    def _interaction_patterns(requirement: str) -> List[str]:
        text = requirement.lower()
        rules = [
            (("form", "input", "login", "register"), "Form submission with validation"),
            (("wizard", "step"), "Multi-step wizard navigation"),
            (("list", "table"), "Data list with pagination/filtering"),
            (("modal", "dialog"), "Modal dialog interactions"),
            (("search",), "Search with autocomplete"),
        ]
        patterns = [label for hints, label in rules if any(h in text for h in hints)]
        return patterns or ["Standard form interaction", "Button click actions"]

    @staticmethod
    def _component_architecture(features: List[str]) -> ComponentArchitecture:
        hierarchy = [
            ComponentDef(
                name=f"{capitalize(features[0])}Page",
                type="page",
                description=f"Main page for {', '.join(features)} features",
                children=[f"{capitalize(f)}Container" for f in features],
            )
        ]
        for f in features:
            name = capitalize(f)
            hierarchy.append(ComponentDef(
                name=f"{name}Container",
                type="container",
                description=f"Container component for {f}",
                props=[
                    ComponentProp(name="onSuccess", type="() => void", required=False,
                                  description="Success callback"),
                    ComponentProp(name="onError", type="(error: Error) => void", required=False,
                                  description="Error callback"),
                ],
                children=[f"{name}Form"],
            ))
            hierarchy.append(ComponentDef(
                name=f"{name}Form",
                type="presentational",
                description=f"Form component for {f}",
                props=[
                    ComponentProp(name="onSubmit", type="(data: FormData) => void", required=True),
                    ComponentProp(name="isLoading", type="boolean", required=False),
                    ComponentProp(name="error", type="string | null", required=False),
                ],
            ))

        return ComponentArchitecture(
            hierarchy=hierarchy,
            shared_components=["Button", "Input", "FormField", "ErrorMessage", "LoadingSpinner"],
            file_structure=FileStructure(
                base_path="src/components",
                directories=[
                    "src/components/pages",
                    "src/components/containers",
                    "src/components/forms",
                    "src/components/shared",
                ],
            ),
        )

    @staticmethod
    def _state_management(requirement: str, architecture: ComponentArchitecture) -> StateManagementSpec:
        local_state = []
        for comp in architecture.hierarchy:
            if comp.type != "presentational":
                continue
            for state_name in ("formData", "errors"):
                local_state.append(LocalStateSpec(
                    component=comp.name,
                    state_name=state_name,
                    type="Record<string, string>",
                    initial_value="{}",
                ))

        global_state = []
        text = requirement.lower()
        if any(h in text for h in ("auth", "login", "user")):
            global_state.append(GlobalStoreSpec(
                name="authStore",
                shape={
                    "user": "User | null",
                    "isAuthenticated": "boolean",
                    "isLoading": "boolean",
                    "error": "string | null",
                },
                actions=["login", "logout", "register", "resetPassword", "clearError"],
                selectors=["selectUser", "selectIsAuthenticated", "selectAuthError"],
            ))
        global_state.append(GlobalStoreSpec(
            name="uiStore",
            shape={
                "isLoading": "boolean",
                "notifications": "Notification[]",
                "theme": "'light' | 'dark'",
            },
            actions=["setLoading", "addNotification", "removeNotification", "toggleTheme"],
            selectors=["selectIsLoading", "selectNotifications", "selectTheme"],
        ))

        return StateManagementSpec(
            local_state=local_state,
            global_state=global_state,
            recommended_library="zustand" if len(global_state) > 1 else "React Context",
        )

    @staticmethod
    def _api_integration(features: List[str]) -> APIIntegration:
        endpoints = []
        for f in features:
            resource = f.lower()
            endpoints.append(FrontendEndpoint(
                path=f"/api/{resource}",
                method="POST",
                description=f"Create/perform {f}",
                request_type=f"{capitalize(f)}Request",
                response_type=f"{capitalize(f)}Response",
            ))
            # Action-only resources have nothing to read back
            if resource not in ("login", "logout", "reset"):
                endpoints.append(FrontendEndpoint(
                    path=f"/api/{resource}",
                    method="GET",
                    description=f"Get {f} data",
                    request_type="void",
                    response_type=f"{capitalize(f)}Data",
                ))

        return APIIntegration(
            endpoints=endpoints,
            error_handling=ErrorHandlingSpec(
                strategies=[
                    "Display user-friendly error messages",
                    "Retry failed requests with exponential backoff",
                    "Log errors for debugging",
                    "Show fallback UI for network failures",
                ],
                fallback_ui="ErrorBoundary with retry option",
            ),
            fetching_pattern="React Query / SWR with caching",
        )

    @staticmethod
    def _responsive_design() -> ResponsiveDesignSpec:
        return ResponsiveDesignSpec(
            breakpoints=[
                BreakpointSpec(name="mobile", min_width=320, max_width=767,
                               layout_strategy="Single column, stacked elements"),
                BreakpointSpec(name="tablet", min_width=768, max_width=1023,
                               layout_strategy="Two column where appropriate"),
                BreakpointSpec(name="desktop", min_width=1024,
                               layout_strategy="Full layout with sidebars if needed"),
            ],
            mobile_considerations=[
                "Touch-friendly tap targets (min 44x44px)",
                "Swipe gestures for navigation",
                "Bottom sheet for actions on mobile",
                "Collapsible navigation menu",
                "Optimized form inputs for mobile keyboards",
            ],
        )

    @staticmethod
    def _accessibility(requirement: str) -> AccessibilitySpec:
        has_form = any(h in requirement.lower() for h in FORM_HINTS)
        return AccessibilitySpec(
            aria_requirements=[
                "aria-label for icon buttons",
                "aria-describedby for form field errors",
                "aria-live regions for dynamic content",
                "role attributes for custom components",
                "aria-expanded for collapsible sections",
            ],
            keyboard_navigation=KeyboardNavigationSpec(
                requirements=[
                    "All interactive elements focusable via Tab",
                    "Escape key closes modals/dropdowns",
                    "Enter key submits forms",
                    "Arrow keys navigate within components",
                ],
                focus_order=[
                    "Header navigation",
                    "Main content",
                    "Form fields (top to bottom)",
                    "Action buttons",
                    "Footer links",
                ],
            ),
            form_accessibility=FormAccessibilitySpec(
                label_requirements=[
                    "Every input has associated label",
                    "Required fields clearly marked",
                    "Help text linked via aria-describedby",
                ],
                error_announcement="aria-live='polite' for error messages",
                validation_feedback="Inline validation with immediate feedback",
            ) if has_form else None,
        )
