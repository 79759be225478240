"""Unit tests for error classes."""

import pytest

from blueprints.utils.errors import (
    AlreadyPublishedError,
    BlueprintsError,
    ConfigurationError,
    ContextError,
    ContextNotFoundError,
    CyclicDependencyError,
    DuplicateUnitError,
    GraphError,
    PollError,
    ReadinessError,
    ReadinessTimeoutError,
    UnknownDependencyError,
)


class TestErrorClasses:
    """Test custom error classes."""

    def test_configuration_error(self):
        """Test ConfigurationError."""
        error = ConfigurationError("Test config error")
        assert str(error) == "Test config error"
        assert isinstance(error, BlueprintsError)

    @pytest.mark.parametrize(
        "error",
        [
            UnknownDependencyError("sa", "iam"),
            CyclicDependencyError(["a", "b"]),
            DuplicateUnitError("a"),
        ],
    )
    def test_graph_errors(self, error):
        """Test graph errors share a base class."""
        assert isinstance(error, GraphError)
        assert isinstance(error, BlueprintsError)

    def test_cyclic_dependency_message(self):
        """Test the cycle path closes on its first unit."""
        error = CyclicDependencyError(["a", "b", "c"])
        assert str(error) == "Cyclic dependency detected: a -> b -> c -> a"
        assert error.cycle == ["a", "b", "c"]

    def test_unknown_dependency_message(self):
        error = UnknownDependencyError("sa", "iam")
        assert str(error) == "Unit 'sa' depends on unknown unit 'iam'"

    def test_context_errors(self):
        """Test context errors."""
        assert isinstance(AlreadyPublishedError("a"), ContextError)
        error = ContextNotFoundError("a", "arn")
        assert isinstance(error, KeyError)
        assert str(error) == "Context published by 'a' has no key 'arn'"

    def test_readiness_errors(self):
        """Test readiness errors."""
        error = ReadinessTimeoutError("providers.pkg.crossplane.io/provider-aws-eks", 300, "False")
        assert isinstance(error, ReadinessError)
        assert str(error) == (
            "Timed out after 300s waiting for providers.pkg.crossplane.io/provider-aws-eks "
            "(last status: 'False')"
        )
        assert isinstance(PollError("boom"), ReadinessError)
