"""Pytest configuration and fixtures."""

import pytest

from statelessor.analyzers.base import Finding
from statelessor.analyzers.rules import RuleRegistry
from statelessor.services.action_service import RemediationCatalog

# Sample sources used across analyzer tests. Line numbers matter.
SAMPLE_CSHARP_CONTROLLER = "\n".join(
    [
        "using System.Web;",                               # 1
        "",                                                # 2
        "namespace Shop.Web",                              # 3
        "{",                                               # 4
        "    public class CartController : Controller",   # 5
        "    {",                                           # 6
        "        private static int _requestCount = 0;",   # 7
        "",                                                # 8
        "        public ActionResult Add(int id)",         # 9
        "        {",                                       # 10
        '            Session["cart"] = id;',               # 11
        "            return View();",                      # 12
        "        }",                                       # 13
        "",                                                # 14
        "        public string Name { get; set; }",        # 15
        "    }",                                           # 16
        "}",                                               # 17
    ]
)

SAMPLE_JAVA_SERVICE = "\n".join(
    [
        "package com.shop;",                                              # 1
        "",                                                               # 2
        "public class CartService {",                                     # 3
        "    private static Map<String, Cart> carts = new HashMap<>();",  # 4
        "    private static final int LIMIT = 10;",                       # 5
        "",                                                               # 6
        "    public void add(HttpSession session, String id) {",         # 7
        '        session.setAttribute("cart", id);',                      # 8
        "    }",                                                          # 9
        "}",                                                              # 10
    ]
)


def _make_finding(
    filename: str = "src/App.cs",
    category: str = "Session State",
    severity: str = "high",
    line_num: int = 1,
    function: str = "Handle",
    remediation: str = "Externalize it.",
    code: str = 'Session["x"] = 1;',
) -> Finding:
    return Finding(
        filename=filename,
        function=function,
        line_num=line_num,
        code=code,
        category=category,
        severity=severity,
        remediation=remediation,
    )


@pytest.fixture
def make_finding():
    """Factory for findings with overridable fields."""
    return _make_finding


@pytest.fixture
def sample_csharp_controller():
    """C# controller with a static field and a session write."""
    return SAMPLE_CSHARP_CONTROLLER


@pytest.fixture
def sample_java_service():
    """Java service with a static map and an HttpSession parameter."""
    return SAMPLE_JAVA_SERVICE


@pytest.fixture
def registry():
    """Registry over the bundled rule catalog."""
    return RuleRegistry()


@pytest.fixture
def catalog():
    """Bundled remediation catalog."""
    return RemediationCatalog.load()


@pytest.fixture
def dotnet_project(tmp_path, sample_csharp_controller):
    """A small .NET tree, including build output that must be skipped."""
    root = tmp_path / "shop"
    (root / "Controllers").mkdir(parents=True)
    (root / "bin").mkdir()
    (root / "obj" / "Debug").mkdir(parents=True)

    (root / "Shop.csproj").write_text("<Project Sdk=\"Microsoft.NET.Sdk.Web\" />\n")
    (root / "Controllers" / "CartController.cs").write_text(sample_csharp_controller)
    (root / "Controllers" / "Clean.cs").write_text("public class Clean { }\n")
    (root / "bin" / "Generated.cs").write_text('Session["x"] = 1;\n')
    (root / "obj" / "Debug" / "Temp.cs").write_text('Session["y"] = 2;\n')
    (root / "README.md").write_text('Session["docs"] is not code\n')
    return root


@pytest.fixture
def java_project(tmp_path, sample_java_service):
    """A small Maven tree with a target/ directory that must be skipped."""
    root = tmp_path / "cart"
    src = root / "src" / "main" / "java" / "com" / "shop"
    src.mkdir(parents=True)
    (root / "target" / "classes").mkdir(parents=True)

    (root / "pom.xml").write_text("<project />\n")
    (src / "CartService.java").write_text(sample_java_service)
    (root / "target" / "classes" / "Copy.java").write_text(sample_java_service)
    return root
