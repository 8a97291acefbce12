"""
Loadable marker.
"""


class Loadable:
    """
    Base for objects the loader builds by passing itself as the only
    constructor argument.

    Example:
        ```python
        class Mailer(Loadable):
            def __init__(self, loader):
                self.config = loader.get("config").xtra("mail")
        ```
    """

    def __init__(self, loader):
        self._loader = loader
