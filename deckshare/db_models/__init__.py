from deckshare.db_models.instance import PresentationInstance, QuestionAnswer

__all__ = ["PresentationInstance", "QuestionAnswer"]
