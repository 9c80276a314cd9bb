from minimax_chess.core.tables import MATE_SCORE


def format_search_info(depth, score, nodes, elapsed, best_move_san):
    nps = int(nodes / elapsed) if elapsed > 0 else 0

    if abs(score) >= MATE_SCORE:
        score_str = f"mate {'white' if score > 0 else 'black'}"
    else:
        score_str = f"cp {score}"

    return (f"info depth {depth} score {score_str} nodes {nodes} nps {nps} "
            f"time {int(elapsed * 1000)} bestmove {best_move_san or '-'}")
