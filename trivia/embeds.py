# trivia/embeds.py - Discord embeds for trivia rounds and statistics

from typing import Dict, List, Optional, Tuple

import discord

from trivia.models import Candidate, PlayerMonthlyStat, Round, RoundResult
from trivia.scoring import MEDALS


def format_latency(seconds: float) -> str:
    if seconds > 60:
        return f"{int(seconds // 60)}:{int(round(seconds % 60)):02d} minutes"
    return f"{seconds:.2f} seconds"


def round_embed(round_: Round) -> discord.Embed:
    """The question: the target's shell and the rules"""
    minutes = round_.duration / 60
    ends = f"<t:{int(round_.deadline)}:R>" if round_.deadline else f"in {minutes:g} minutes"

    embed = discord.Embed(title="Trivia Game", color=discord.Color.teal())
    embed.add_field(
        name="📜 Rules",
        value=(
            f"• ✏️ 1 shell\n"
            f"• 🚗 {len(round_.candidates)} tier X tanks\n"
            f"• ✅ 1 right answer (⚠️ when several tanks share the same shell, all of them are right)\n"
            f"• 🕒 {minutes:g} minutes (ends {ends})\n"
            f"**⚠️ It is not necessarily the last gun researched!**"
        ),
        inline=False
    )
    embed.add_field(name="Shell", value=f"`{round_.target.ammo.describe()}`", inline=True)
    return embed


def result_embeds(round_: Round, result: RoundResult, names: Dict[str, str]) -> List[discord.Embed]:
    """The answer, other valid answers and the podium"""
    answer = discord.Embed(
        title="Trivia Game: RESULT",
        description=f"The tank to guess was: `{round_.target.name}`",
        color=discord.Color.green()
    )
    if round_.target.image_url:
        answer.set_image(url=round_.target.image_url)
    if result.other_correct:
        answer.add_field(
            name="Other right answers",
            value="\n".join(candidate.name for candidate in result.other_correct),
            inline=False
        )

    if not result.has_participants:
        description = "No player sent an answer!"
    else:
        description = ""
        for medal, (player_id, submission) in zip(MEDALS, result.podium()):
            description += f"{medal} {names.get(player_id, player_id)} in {format_latency(submission.latency)}\n"
        description = description or "No player found the right answer!"

    players = discord.Embed(
        title="Players",
        description=description,
        color=discord.Color.gold() if result.has_participants else discord.Color.red()
    )
    return [answer, players]


def answer_feedback(is_correct: bool, stat: PlayerMonthlyStat, delta: int,
                    chosen: Optional[Candidate]) -> str:
    """Private reply sent to a player once the round is scored"""
    if is_correct:
        return (
            f"You got the right answer, well done 👏\n"
            f"Your new elo is `{stat.elo}` (change of `{delta:+d}`)"
        )

    text = "You did not get the right answer!\n"
    if chosen is not None:
        text += f"The `{chosen.name}` fires `{chosen.ammo.type.label}` with an alpha of `{chosen.ammo.max_damage}`.\n"
    text += f"Your new elo is `{stat.elo}` (change of `{delta:+d}`)"
    return text


def reminder_embed() -> discord.Embed:
    return discord.Embed(
        title="🔁 Trivia reminder 🔁",
        description=(
            "For those who haven't played yet, don't forget to answer at least one "
            "question today! (more info with `/trivia_rules`)"
        ),
        color=discord.Color.blue()
    )


def rules_embed(candidate_count: int, window: float, response_time_limit: float) -> discord.Embed:
    embed = discord.Embed(title="🧮 Trivia Rules", color=discord.Color.blue())
    embed.add_field(
        name="How to play",
        value=(
            f"A shell is shown with {candidate_count} tier X tanks. Click the tank that fires it.\n"
            f"Tanks sharing the exact same shell are all right answers.\n"
            f"You have {window / 60:g} minutes; only your last click counts."
        ),
        inline=False
    )
    embed.add_field(
        name="Elo",
        value=(
            "• Right answer: `60 × e^(-elo/10000)` points\n"
            f"• Answer within {response_time_limit:g}s: up to a third more, the faster the better\n"
            "• Wrong answer: `-60 × e^(elo/10000)` points\n"
            "• Elo never goes below 0 and starts over every month"
        ),
        inline=False
    )
    return embed


def stats_embed(username: str, month: str, stat: Optional[PlayerMonthlyStat]) -> discord.Embed:
    embed = discord.Embed(title=f"📊 Trivia Stats - {username}", description=f"**Month:** {month}",
                          color=discord.Color.blue())
    if stat is None:
        embed.description += "\n\nNo answer this month yet. Catch the next round!"
        return embed

    embed.add_field(
        name="📊 Monthly Performance",
        value=(
            f"**🏆 Elo:** `{stat.elo}`\n"
            f"**❓ Rounds Played:** `{stat.participation}`\n"
            f"**🎯 Accuracy:** `{stat.accuracy:.1f}%`\n"
            f"**🔥 Win Streak:** `{stat.win_streak}`\n"
            f"**⏱️ Avg. Answer Time:** `{format_latency(stat.avg_latency)}`"
        ),
        inline=False
    )
    return embed


def leaderboard_embed(month: str, leaderboard: List[Tuple[str, PlayerMonthlyStat]],
                      names: Dict[str, str]) -> discord.Embed:
    embed = discord.Embed(title="🏆 Trivia Leaderboard 🏆", color=discord.Color.gold())
    if not leaderboard:
        embed.description = f"No champions for {month} yet! Be the first to play."
        return embed

    lines = []
    for i, (player_id, stat) in enumerate(leaderboard, 1):
        rank = MEDALS[i - 1] if i <= len(MEDALS) else f"**#{i}**"
        lines.append(f"{rank} **{names.get(player_id, player_id)}** • `{stat.elo}` elo • "
                     f"🎯 {stat.accuracy:.0f}% • 🔥 {stat.win_streak}")
    embed.description = f"### {month}\n" + "\n".join(lines)
    return embed
