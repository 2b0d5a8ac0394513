from .loader import PageResult, RunListResult, load_classified_runs, load_module_page, load_phase_page

__all__ = [
    "PageResult",
    "RunListResult",
    "load_classified_runs",
    "load_module_page",
    "load_phase_page",
]
