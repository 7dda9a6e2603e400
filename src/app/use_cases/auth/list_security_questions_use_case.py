"""
List Security Questions Use Case

Public catalog of the questions users can configure.
"""

from src.app.services.unit_of_work import UnitOfWork
from src.libs.result import Result, Return
from .dtos import SecurityQuestionCatalogResponse, SecurityQuestionInfo


class ListSecurityQuestionsUseCase:
    """Active catalog entries, ordered for display"""

    def __init__(self, uow: UnitOfWork):
        self.uow = uow

    async def execute(self) -> Result[SecurityQuestionCatalogResponse]:
        async with self.uow:
            questions = await self.uow.security_questions.list_active()

            # Rows are expired by the rollback on exit, read them here
            items = [
                SecurityQuestionInfo(
                    id=question.id,
                    question_text=question.question_text,
                    category=question.category.value,
                )
                for question in questions
            ]

        return Return.ok(SecurityQuestionCatalogResponse(questions=items, count=len(items)))
