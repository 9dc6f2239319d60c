"""Utilities of the evaluator subpackage."""


def in_notebook() -> bool:
    """Returns ``True`` when running inside a Jupyter (or Colab) kernel."""
    try:
        shell = get_ipython().__class__  # type: ignore # noqa: F821
    except NameError:
        return False

    return shell.__name__ == "ZMQInteractiveShell" or shell.__module__ == "google.colab._shell"
