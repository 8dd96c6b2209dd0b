class JourneyBuilderError(Exception):
    pass


class GraphLoadError(JourneyBuilderError):
    """Graph fetch failed or returned a structurally invalid payload."""

    def __init__(self, message: str, detail: str | None = None):
        self.detail = detail
        super().__init__(f"{message}: {detail}" if detail else message)


class FieldListError(JourneyBuilderError):
    def __init__(self, step_id: str, message: str):
        self.step_id = step_id
        super().__init__(f"Field listing failed for step '{step_id}': {message}")


class PersistenceError(JourneyBuilderError):
    def __init__(self, form_id: str, message: str):
        self.form_id = form_id
        super().__init__(f"Prefill config persistence failed for form '{form_id}': {message}")
