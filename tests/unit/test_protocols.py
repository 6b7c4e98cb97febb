from typing import Any

from request_pacer.protocols import ClassifierProtocol
from request_pacer.providers import HttpResponseClassifier, TraktClassifier
from request_pacer.types.result import TaskResult


class TestProtocols:
    def test_classifier_protocol_runtime_checkable(self):
        """Verify ClassifierProtocol is runtime checkable."""

        class ValidClassifier:
            def classify(self, response: Any) -> TaskResult:
                return TaskResult.success(response)

            def is_transport_error(self, error: BaseException) -> bool:
                return False

        assert isinstance(ValidClassifier(), ClassifierProtocol)

    def test_incomplete_classifier_rejected(self):
        """A classifier without is_transport_error does not satisfy the protocol."""

        class ClassifyOnly:
            def classify(self, response: Any) -> TaskResult:
                return TaskResult.success(response)

        assert not isinstance(ClassifyOnly(), ClassifierProtocol)

    def test_builtin_classifiers_satisfy_protocol(self):
        assert isinstance(HttpResponseClassifier(), ClassifierProtocol)
        assert isinstance(TraktClassifier(), ClassifierProtocol)
