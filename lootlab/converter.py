from lootlab.models.dc_models import (
    ChestResultModel,
    GameResultModel,
    GameRoundModel,
    RunnerResultModel,
)
from lootlab.models.schema_models import GameRoundSchema


class DataConverter:
    """Build client responses from recorded game rounds.

    Everything the client sees is read from the persisted round, so the
    response can never disagree with the record.
    """

    def convert_round_to_result(self, game_round: GameRoundSchema) -> GameResultModel:
        """Convert a GameRoundSchema to the response for its game type

        Args:
            game_round (GameRoundSchema): The recorded round

        Returns:
            GameResultModel: Chest and runner rounds get their extra fields
        """
        detail = game_round.outcome_detail
        payout = float(game_round.payout_amount)

        if game_round.game_type.startswith("chest:"):
            return ChestResultModel(
                won=game_round.won,
                payout=payout,
                round_id=game_round.round_id,
                prize_amount=payout,
                prize_type=detail.get("prize_type", "Nothing"),
            )
        if game_round.game_type == "runner":
            return RunnerResultModel(
                won=game_round.won,
                payout=payout,
                round_id=game_round.round_id,
                total_cost=float(game_round.stake_amount),
            )
        return GameResultModel(
            won=game_round.won,
            payout=payout,
            round_id=game_round.round_id,
        )

    def convert_round_to_history(self, game_round: GameRoundSchema) -> GameRoundModel:
        return GameRoundModel(
            round_id=game_round.round_id,
            game_type=game_round.game_type,
            stake=float(game_round.stake_amount),
            payout=float(game_round.payout_amount),
            won=game_round.won,
            result=game_round.outcome_detail,
            created_at=game_round.created_at,
        )
