from .quiz import QuestionView, QuizApp

__all__ = ["QuestionView", "QuizApp"]
