import pytest

from declcop.services.config_loader import load_lint_config
from declcop.utils.syntax_tree import const, send


@pytest.fixture
def lint_config():
    """The packaged default configuration"""
    return load_lint_config()


@pytest.fixture
def association_family(lint_config):
    return lint_config.family("association")


@pytest.fixture
def route_family(lint_config):
    return lint_config.family("route")


@pytest.fixture
def routes_receiver():
    """`Rails.application.routes` as a receiver chain"""
    return send("routes", receiver=send("application", receiver=const("Rails")))
