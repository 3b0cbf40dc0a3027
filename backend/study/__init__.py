from backend.study.session import StudySession, StudySessionState, fisher_yates_shuffle

__all__ = ["StudySession", "StudySessionState", "fisher_yates_shuffle"]
