import argparse

from minimax_chess.config import CONFIG, configure_logging
from minimax_chess.main import Engine


def main(argv=None):
    parser = argparse.ArgumentParser(description="Play chess against the minimax engine.")
    parser.add_argument("--depth", type=int, default=CONFIG.search.depth)
    parser.add_argument("--color", default=CONFIG.game.player_color, help="your side: w or b")
    parser.add_argument("--fen", default=None, help="start from this position")
    args = parser.parse_args(argv)

    configure_logging()
    game = Engine(depth=args.depth, player_color=args.color, fen=args.fen)

    while not game.is_game_over():
        print(game.board)
        print("----------------------------")

        if game.is_player_turn():
            try:
                user_move = input("Enter your move (uci format, e2e4): ").strip()
            except EOFError:
                return
            if user_move == "quit":
                return
            try:
                game.make_move(user_move)
            except ValueError as e:
                print(f"{e}, try again.")
        else:
            san = game.computer_move()
            if san is None:
                break
            print(f"Engine plays: {san}")

    print(game.board)
    print("Game Over")
    print(game.status() or f"Result: {game.board.board.result()}")


if __name__ == "__main__":
    main()
