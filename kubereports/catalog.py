"""Static catalog of Trivy report resources collected every cycle.

Order is collection order. SBOM kinds are listed but disabled: they are large
and the viewer does not need them by default.
"""

from __future__ import annotations

from kubereports.models.reports import ReportResource

REPORT_RESOURCES: tuple[ReportResource, ...] = (
    ReportResource("vulnerabilityreports", "VulnerabilityReport", "vulnerability-reports"),
    ReportResource("configauditreports", "ConfigAuditReport", "config-audit-reports"),
    ReportResource("clusterconfigauditreports", "ClusterConfigAuditReport", "cluster-config-audit-reports"),
    ReportResource("clusterrbacassessmentreports", "ClusterRbacAssessmentReport", "cluster-rbac-assessment-reports"),
    ReportResource("exposedsecretreports", "ExposedSecretReport", "exposed-secret-reports"),
    ReportResource("clustercompliancereports", "ClusterComplianceReport", "cluster-compliance-reports"),
    ReportResource("clustervulnerabilityreports", "ClusterVulnerabilityReport", "cluster-vulnerability-reports"),
    ReportResource("rbacassessmentreports", "RbacAssessmentReport", "rbac-assessment-reports"),
    ReportResource("sbomreports", "SbomReport", "sbom-reports", enabled=False),
    ReportResource("clustersbomreports", "ClusterSbomReport", "cluster-sbom-reports", enabled=False),
)


def enabled_resources(
    catalog: tuple[ReportResource, ...] = REPORT_RESOURCES,
) -> tuple[ReportResource, ...]:
    """Return the catalog entries that are collected, in catalog order."""
    return tuple(r for r in catalog if r.enabled)


def report_type_names(catalog: tuple[ReportResource, ...] = REPORT_RESOURCES) -> list[str]:
    return [r.name for r in enabled_resources(catalog)]
