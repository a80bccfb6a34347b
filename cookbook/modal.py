class Modal:
    """Show/hide state of the overlay that hosts the recipe form."""

    def __init__(self):
        self.is_open = False
        self.title = ""

    def open(self, title: str):
        self.title = title
        self.is_open = True

    def close(self):
        self.is_open = False
