# Layer 8, security forensics: indicators of compromise, backdoors, exfiltration,
# supply-chain hooks and known-vulnerable dependency versions.
#
# The text patterns are a fixed table; each row becomes a rule "security-<id>".
# Pattern rules work on raw text, so they also run on files without a usable AST.

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable, Optional, Sequence

from neurolint.context import FileContext
from neurolint.findings.models import Issue, SecuritySummary, Severity
from neurolint.layers.advisories import (
    CVE_2025_55182,
    REACT_PACKAGES,
    advisory_for,
    range_prefix,
)
from neurolint.layers.base import Edit, Layer, Match, Rule
from neurolint.layers.syntax import named_children, string_value

SEVERITY_MAP = {
    "critical": Severity.ERROR,
    "high": Severity.ERROR,
    "medium": Severity.WARNING,
    "low": Severity.INFO,
}

_RISK_ORDER = ("critical", "high", "medium", "low")

DEPENDENCY_SECTIONS = ("dependencies", "devDependencies", "peerDependencies", "optionalDependencies")


@dataclass(frozen=True)
class SecurityPattern:
    id: str
    threat: str
    level: str
    category: str
    pattern: re.Pattern
    message: str
    description: str
    remediation: str
    cve: Optional[str] = None


PATTERNS: tuple[SecurityPattern, ...] = (
    SecurityPattern(
        id="eval-injection",
        threat="ioc",
        level="critical",
        category="Code Injection",
        pattern=re.compile(r"\beval\s*\([^)]{0,500}\)"),
        message="Dangerous eval() usage detected",
        description="eval() executes arbitrary code and is a common attack vector",
        remediation="Remove eval() and use JSON.parse() for data or Function constructor alternatives",
    ),
    SecurityPattern(
        id="function-constructor",
        threat="ioc",
        level="high",
        category="Code Injection",
        pattern=re.compile(r"new\s+Function\s*\([^)]{0,500}\)"),
        message="Dynamic Function constructor detected",
        description="Function constructor can execute arbitrary code similar to eval()",
        remediation="Avoid dynamic function creation, use static functions instead",
    ),
    SecurityPattern(
        id="base64-payload",
        threat="backdoor",
        level="high",
        category="Obfuscation",
        pattern=re.compile(r"atob\s*\(\s*['\"`][A-Za-z0-9+/=]{50,}['\"`]\s*\)"),
        message="Suspicious Base64 encoded payload detected",
        description="Large Base64 strings decoded at runtime may contain malicious code",
        remediation="Review the decoded content and verify its legitimacy",
    ),
    SecurityPattern(
        id="hex-encoding",
        threat="ioc",
        level="medium",
        category="Obfuscation",
        pattern=re.compile(r"\\x[0-9a-fA-F]{2}(?:\\x[0-9a-fA-F]{2}){10,}"),
        message="Hex-encoded string detected",
        description="Long hex-encoded strings may be hiding malicious payloads",
        remediation="Decode and review the content",
    ),
    SecurityPattern(
        id="reverse-shell",
        threat="backdoor",
        level="critical",
        category="Backdoor",
        # Window stops at the next child_process so no text is rescanned per occurrence
        pattern=re.compile(
            r"child_process(?:(?!child_process)[^\n]){0,200}?exec[^\n]{0,200}?\b(nc|netcat|bash|sh|cmd)\b",
            re.IGNORECASE,
        ),
        message="Potential reverse shell command detected",
        description="This pattern is commonly used in reverse shells and backdoors",
        remediation="Remove the code and audit for compromise",
    ),
    SecurityPattern(
        id="env-exfiltration",
        threat="exfiltration",
        level="high",
        category="Data Exfiltration",
        pattern=re.compile(r"fetch\s*\([^)]{0,500}process\.env"),
        message="Environment variable exfiltration attempt",
        description="Sending process.env data over network could leak secrets",
        remediation="Never transmit environment variables, especially secrets",
    ),
    SecurityPattern(
        id="credentials-in-code",
        threat="vulnerability",
        level="high",
        category="Hardcoded Credentials",
        pattern=re.compile(
            r"(password|apikey|api_key|secret|token)\s*[:=]\s*['\"`][^'\"`]{8,}['\"`]", re.IGNORECASE
        ),
        message="Potential hardcoded credentials detected",
        description="Hardcoded credentials in source code are a security risk",
        remediation="Move credentials to environment variables",
    ),
    SecurityPattern(
        id="crypto-miner",
        threat="crypto-miner",
        level="critical",
        category="Crypto Mining",
        pattern=re.compile(r"\b(coinhive|cryptonight|monero|stratum\+tcp|minergate)", re.IGNORECASE),
        message="Crypto mining library or protocol detected",
        description="Unauthorized crypto mining uses resources without consent",
        remediation="Remove crypto mining code immediately",
    ),
    SecurityPattern(
        id="postinstall-script",
        threat="supply-chain",
        level="high",
        category="Supply Chain",
        pattern=re.compile(r"\"postinstall\"\s*:\s*\"[^\"]{0,500}\b(curl|wget|sh|bash|node\s+-e)"),
        message="Suspicious postinstall script detected",
        description="Postinstall scripts that download/execute code are high risk",
        remediation="Review and remove suspicious postinstall commands",
    ),
    SecurityPattern(
        id="rsc-action-injection",
        threat="vulnerability",
        level="critical",
        category="RSC Security",
        pattern=re.compile(r"'use server'(?:(?!'use server')[\s\S])*?(eval|Function|import\()"),
        message="Dynamic code execution in Server Action",
        description="Server Actions with dynamic code execution can lead to RCE",
        remediation="Never use eval or dynamic imports in Server Actions",
        cve=CVE_2025_55182,
    ),
    SecurityPattern(
        id="unsafe-redirect",
        threat="vulnerability",
        level="medium",
        category="Open Redirect",
        pattern=re.compile(r"redirect\s*\(\s*(?!['\"`]/|['\"`]http)"),
        message="Potentially unsafe redirect",
        description="Redirects using user input can lead to phishing attacks",
        remediation="Validate redirect URLs against an allowlist",
    ),
    SecurityPattern(
        id="dangerously-set-html",
        threat="vulnerability",
        level="medium",
        category="XSS",
        pattern=re.compile(r"dangerouslySetInnerHTML\s*=\s*\{\s*\{\s*__html:\s*[^}]{0,500}\}\s*\}"),
        message="dangerouslySetInnerHTML usage detected",
        description="Setting HTML directly can lead to XSS if not sanitized",
        remediation="Sanitize HTML content with DOMPurify or similar",
    ),
    SecurityPattern(
        id="sql-injection",
        threat="vulnerability",
        level="critical",
        category="SQL Injection",
        # An interpolation followed on the same line, before the next one, by a SQL keyword
        pattern=re.compile(
            r"\$\{[^{}\n]{0,200}\}(?:[^$\n]|\$(?!\{)){0,200}?\b(?:SELECT|INSERT|UPDATE|DELETE|DROP)\b",
            re.IGNORECASE,
        ),
        message="Potential SQL injection vulnerability",
        description="String interpolation in SQL queries can lead to injection",
        remediation="Use parameterized queries or an ORM",
    ),
    SecurityPattern(
        id="webshell-pattern",
        threat="backdoor",
        level="critical",
        category="Webshell",
        pattern=re.compile(r"\b(passthru|shell_exec|system|exec)\s*\(\s*\$_(GET|POST|REQUEST)", re.IGNORECASE),
        message="Webshell pattern detected",
        description="This pattern is commonly found in webshells",
        remediation="Remove the code and audit for compromise",
    ),
    SecurityPattern(
        id="prototype-pollution",
        threat="vulnerability",
        level="high",
        category="Prototype Pollution",
        pattern=re.compile(r"\[['\"`]__proto__['\"`]\]|\[['\"`]constructor['\"`]\]\[['\"`]prototype['\"`]\]"),
        message="Potential prototype pollution",
        description="Accessing __proto__ or constructor.prototype can lead to pollution",
        remediation="Validate and sanitize object keys",
    ),
)


class PatternRule(Rule):
    """One row of the security pattern table, matched against raw text."""

    layer = 8
    category = "security"
    requires_tree = False

    def __init__(self, definition: SecurityPattern) -> None:
        self.definition = definition
        self.id = f"security-{definition.id}"
        self.name = definition.category
        self.description = definition.description
        self.severity = SEVERITY_MAP[definition.level]
        self.remediation = definition.remediation
        self.cve = definition.cve

    def find(self, context: FileContext) -> Iterable[Match]:
        for m in self.definition.pattern.finditer(context.text):
            yield Match(m.start(), m.end(), self.definition.message)


class VulnerableDependencyRule(Rule):
    """
    package.json pins a react, react-server-dom-* or next release affected by
    CVE-2025-55182. The fix bumps the version and keeps its range operator.
    """

    id = "security-cve-2025-55182"
    layer = 8
    name = "Vulnerable React Server Components version"
    description = "React Server Components remote code execution (CVSS 10.0)"
    severity = Severity.ERROR
    category = "security"
    cve = CVE_2025_55182
    fix_description = "Upgraded to patched release"

    def applies_to(self, context: FileContext) -> bool:
        return (
            super().applies_to(context)
            and context.language == "json"
            and context.analysis.basename == "package.json"
        )

    def find(self, context: FileContext) -> Iterable[Match]:
        root = context.root_node
        top = next((n for n in named_children(root) if n.type == "object"), None)
        if top is None:
            return
        for section in named_children(top):
            if section.type != "pair":
                continue
            if string_value(context, section.child_by_field_name("key")) not in DEPENDENCY_SECTIONS:
                continue
            deps = section.child_by_field_name("value")
            if deps is None or deps.type != "object":
                continue
            for dep in named_children(deps):
                if dep.type != "pair":
                    continue
                package = string_value(context, dep.child_by_field_name("key"))
                value = dep.child_by_field_name("value")
                version = string_value(context, value)
                if package is None or version is None:
                    continue
                patched = advisory_for(package, version)
                if patched is None:
                    continue
                start, end = context.node_range(value)
                kind = "React" if package in REACT_PACKAGES else "Next.js"
                yield Match(
                    start,
                    end,
                    f"{package}@{version} is vulnerable to {CVE_2025_55182}",
                    data={"version": version, "patched": patched},
                    description=f"{kind} Server Components remote code execution; upgrade to {patched}",
                )

    def edit(self, context: FileContext, match: Match) -> Optional[Edit]:
        version = match.data["version"]
        return Edit(match.start, match.end, f'"{range_prefix(version)}{match.data["patched"]}"')


SECURITY_RULES: tuple[Rule, ...] = tuple(PatternRule(p) for p in PATTERNS) + (VulnerableDependencyRule(),)

_PATTERNS_BY_RULE = {f"security-{p.id}": p for p in PATTERNS}


def summarize(issues: Sequence[Issue]) -> SecuritySummary:
    """Roll Layer 8 issues up into threat counts and an overall risk level."""
    found = [i for i in issues if i.layer == 8]
    levels: set[str] = set()
    vulnerabilities = 0
    indicators = 0
    for issue in found:
        definition = _PATTERNS_BY_RULE.get(issue.rule_name)
        threat = definition.threat if definition is not None else "vulnerability"
        levels.add(definition.level if definition is not None else "critical")
        if threat == "vulnerability":
            vulnerabilities += 1
        elif threat in ("ioc", "backdoor"):
            indicators += 1
    risk = next((level for level in _RISK_ORDER if level in levels), "clean")
    return SecuritySummary(
        threats=len(found),
        vulnerabilities=vulnerabilities,
        compromise_indicators=indicators,
        risk_level=risk,
    )


class SecurityLayer(Layer):
    number = 8
    name = "Security"
    description = "Indicators of compromise, backdoors and vulnerable dependency versions"
    rules = SECURITY_RULES
