from summary_bridge.progress import ProgressChannel


class ModelBackend:
    """One way of turning a prompt into model text."""

    name = "backend"

    async def complete(self, prompt: str, progress: ProgressChannel) -> str:
        raise NotImplementedError
