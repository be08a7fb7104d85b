import argparse
import asyncio

from joindots.core.errors import JoinDotsError
from joindots.core.log import configure_logging
from joindots.core.settings import load_settings
from joindots.models.enums import AUTOMATED_SIDE, HUMAN_SIDE, Difficulty
from joindots.services.game_service import GameService


async def play(difficulty: Difficulty):
    print("=======================================")
    print(f"   JOIN DOTS: Human vs AI ({difficulty})")
    print("=======================================")

    service = GameService()
    game_id = service.create_game(difficulty)
    session = service.get_session(game_id)

    print(session.board.get_visual_board())

    while not session.outcome.is_terminal:

        # --- Human Turn (Red) ---
        if session.side_to_move == HUMAN_SIDE:
            valid_moves = session.board.valid_columns()
            user_input = input(f"\nYour Move (Columns {valid_moves}): ")
            try:
                service.process_human_move(game_id, int(user_input))
            except JoinDotsError as e:
                print(f"Move rejected: {e}")
                continue
            except ValueError:
                print("Please enter a valid number.")
                continue

        # --- AI Turn (Yellow) ---
        else:
            print("\nAI is thinking...")
            result = await service.step_ai_turn(game_id)
            for thought in result.thoughts:
                print(f"AI: {thought.text}")
            print(f"AI plays Column: {result.column} ({result.source})")

        # Show Board
        print("\n" + session.board.get_visual_board())

    # --- End Game ---
    winner = session.outcome.winner
    if winner == HUMAN_SIDE:
        print("\nGame Over! You Win!")
    elif winner == AUTOMATED_SIDE:
        print("\nGame Over! AI Wins!")
    else:
        print("\nGame Over! It's a Draw.")


def main():
    settings = load_settings()
    parser = argparse.ArgumentParser(description="Play Join Dots in the terminal")
    parser.add_argument(
        "--difficulty",
        choices=[d.value for d in Difficulty],
        default=settings.game.default_difficulty.value,
    )
    args = parser.parse_args()

    configure_logging(settings.logging.level)
    try:
        asyncio.run(play(Difficulty(args.difficulty)))
    except (KeyboardInterrupt, EOFError):
        print("\nBye.")


if __name__ == "__main__":
    main()
