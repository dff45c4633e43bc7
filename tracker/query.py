"""Rule-based answers to free-text questions about a dashboard spec.

Rules are checked top to bottom against the lower-cased question and the
first rule whose keywords appear wins, so a question such as
"cost insight please" is answered by the cost rule, not the insight rule.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Tuple

from tracker.spec import KPI, DashboardSpec


NO_DATA_MESSAGE = "No data loaded. Please upload a file to activate the agent."
EXPORT_MESSAGE = "Use the **Export Report** button in the top-right of the dashboard to download a CSV report."
HINT = 'Try asking: "summarize", "what\'s behind schedule?", "list disciplines", or "what equipment is idle?".'

COST_KPI_IDS = ("total_budget", "total_spent", "cost_variance")


@dataclass(frozen=True)
class AgentReply:
    message: str
    highlight_kpi_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"message": self.message}
        if self.highlight_kpi_id:
            out["highlightKpiId"] = self.highlight_kpi_id
        return out


Handler = Callable[[DashboardSpec, Optional[str]], AgentReply]


def _kpi_text(k: KPI) -> str:
    return f"{k.value}{f' ({k.delta})' if k.delta else ''}"


def _find(spec: DashboardSpec, *fragments: str) -> Optional[KPI]:
    return next((k for k in spec.kpis if any(f in k.id for f in fragments)), None)


def _first_insight(spec: DashboardSpec) -> str:
    return spec.insights[0] if spec.insights else ""


def _summary(spec: DashboardSpec, module: Optional[str]) -> AgentReply:
    kpi_lines = "\n".join(f"• {k.label}: {_kpi_text(k)}" for k in spec.kpis)
    findings = "\n".join(f"{i + 1}. {s}" for i, s in enumerate(spec.insights[:2]))
    title = (module or "site").upper()
    return AgentReply(f"**{title} STATUS SUMMARY**\n\n{kpi_lines}\n\n**Key Findings:**\n{findings}")


def _is_cost(spec: DashboardSpec, module: Optional[str]) -> bool:
    if module:
        return module == "cost"
    return any(k.id in COST_KPI_IDS for k in spec.kpis)


def _cost(spec: DashboardSpec, module: Optional[str]) -> AgentReply:
    if not _is_cost(spec, module):
        return AgentReply(
            "Budget, spent and variance figures are tracked in the **Cost** view. "
            "Switch to the Cost dashboard or upload a cost file to see them."
        )
    labels = {"total_budget": "Budget", "total_spent": "Spent", "cost_variance": "Variance"}
    parts = [f"{labels[k.id]}: **{_kpi_text(k)}**" for k in spec.kpis if k.id in labels]
    lines = [" · ".join(parts)] if parts else ["No budget, spent or variance figures found."]
    if spec.insights:
        lines.append(_first_insight(spec))
    return AgentReply("\n".join(lines), highlight_kpi_id="cost_variance" if spec.kpi("cost_variance") else None)


def _manpower(spec: DashboardSpec, module: Optional[str]) -> AgentReply:
    k = _find(spec, "actual", "headcount")
    if k:
        return AgentReply(f"**{k.label}** is currently **{_kpi_text(k)}**.", highlight_kpi_id=k.id)
    return AgentReply(_first_insight(spec) or "No manpower data found.")


def _equipment(spec: DashboardSpec, module: Optional[str]) -> AgentReply:
    idle = _find(spec, "idle")
    brk = _find(spec, "breakdown")
    util = _find(spec, "util")
    parts = [
        f"Idle: **{idle.value}** units" if idle else "",
        f"Breakdown: **{brk.value}** units" if brk else "",
        f"Utilization: **{util.value}**" if util else "",
    ]
    return AgentReply(f"Equipment fleet: {', '.join(p for p in parts if p)}.\n\n{_first_insight(spec)}")


def _progress(spec: DashboardSpec, module: Optional[str]) -> AgentReply:
    slip = _find(spec, "slippage")
    actual = _find(spec, "actual")
    lines = [
        f"Actual progress: **{actual.value}**" if actual else "",
        f"Schedule slippage: **{slip.value}**" if slip else "",
        _first_insight(spec),
    ]
    return AgentReply("\n".join(line for line in lines if line))


def _disciplines(spec: DashboardSpec, module: Optional[str]) -> AgentReply:
    meta = spec.meta
    return AgentReply(
        f"Active disciplines: **{', '.join(meta.disciplines)}**.\nDate range: {meta.date_min} → {meta.date_max}."
    )


def _insights(spec: DashboardSpec, module: Optional[str]) -> AgentReply:
    listed = "\n".join(f"{i + 1}. {s}" for i, s in enumerate(spec.insights))
    return AgentReply(f"**Current issues:**\n\n{listed}")


def _export(spec: DashboardSpec, module: Optional[str]) -> AgentReply:
    return AgentReply(EXPORT_MESSAGE)


def _fallback(spec: DashboardSpec, module: Optional[str]) -> AgentReply:
    if not spec.kpis:
        return AgentReply("No data available for this query.")
    k = spec.kpis[0]
    return AgentReply(f"**{k.label}**: {_kpi_text(k)}.\n\n{HINT}")


# Order matters: first match wins.
RULES: List[Tuple[str, Tuple[str, ...], Handler]] = [
    ("summary", ("summary", "summarize", "overview"), _summary),
    ("cost", ("cost", "budget", "spend", "financial", "forecast", "over budget"), _cost),
    ("manpower", ("manpower", "headcount", "worker", "crew"), _manpower),
    ("equipment", ("equipment", "idle", "breakdown", "fleet"), _equipment),
    ("progress", ("progress", "behind", "ahead", "schedule", "slippage"), _progress),
    ("discipline", ("discipline",), _disciplines),
    ("insight", ("insight", "problem", "issue"), _insights),
    ("export", ("export", "report", "download"), _export),
]


def match_rule(question: str) -> str:
    q = (question or "").lower()
    for name, keywords, _ in RULES:
        if any(k in q for k in keywords):
            return name
    return "fallback"


def answer(question: str, spec: Optional[DashboardSpec], module: Optional[str] = None) -> AgentReply:
    if spec is None:
        return AgentReply(NO_DATA_MESSAGE)
    q = (question or "").lower()
    for _, keywords, handler in RULES:
        if any(k in q for k in keywords):
            return handler(spec, module)
    return _fallback(spec, module)
