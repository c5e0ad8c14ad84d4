from . import glossary, jobs, tasks, title_gen, translator

__all__ = ["glossary", "jobs", "tasks", "title_gen", "translator"]
