from pydantic import BaseModel


class UserStats(BaseModel):
    totalBooks: int = 0
    activeExchanges: int = 0
    completedExchanges: int = 0
    reputation: int = 0
