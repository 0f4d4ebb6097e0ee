"""Arithmetic question generation.

A seeded generator yields the same questions, in the same order, on every
client that shares the seed. Each call to ``next_question`` consumes a fixed
sequence of draws for its category, so clients stay aligned as long as they
draw once per question shown.
"""

import random
from collections.abc import Callable, Iterator
from enum import Enum

from pydantic import BaseModel, ConfigDict

_MASK32 = 0xFFFFFFFF


class Operation(str, Enum):
    ADD = "add"
    SUB = "sub"
    MUL = "mul"
    DIV = "div"
    LCM = "lcm"
    HCF = "hcf"
    HPF = "hpf"
    SQUARE = "square"
    CUBE = "cube"


OPERATIONS: tuple[Operation, ...] = tuple(Operation)


class Question(BaseModel):
    model_config = ConfigDict(frozen=True)

    prompt: str
    answer: int


def _imul(a: int, b: int) -> int:
    return (a * b) & _MASK32


class Mulberry32:
    def __init__(self, seed: int):
        self.state = seed & _MASK32

    def __call__(self) -> float:
        self.state = (self.state + 0x6D2B79F5) & _MASK32
        t = self.state
        t = _imul(t ^ (t >> 15), t | 1)
        t ^= (t + _imul(t ^ (t >> 7), t | 61)) & _MASK32
        return ((t ^ (t >> 14)) & _MASK32) / 4294967296


def gcd(a: int, b: int) -> int:
    while b:
        a, b = b, a % b
    return abs(a)


def lcm(a: int, b: int) -> int:
    return abs(a * b) // gcd(a, b)


def highest_prime_factor(n: int) -> int:
    num = n
    max_prime = -1
    while num % 2 == 0:
        max_prime = 2
        num //= 2
    i = 3
    while i * i <= num:
        while num % i == 0:
            max_prime = i
            num //= i
        i += 2
    if num > 2:
        max_prime = num
    return max_prime


class QuestionGenerator:
    def __init__(self, seed: int | None = None):
        self.seed = seed
        self.draws = 0
        self._random: Callable[[], float]
        if seed is None:
            self._random = random.Random().random
        else:
            self._random = Mulberry32(seed)

    def __iter__(self) -> Iterator[Question]:
        while True:
            yield self.next_question()

    def _rand_int(self, low: int, high: int) -> int:
        return int(self._random() * (high - low + 1)) + low

    def next_question(self) -> Question:
        op = OPERATIONS[self._rand_int(0, len(OPERATIONS) - 1)]
        self.draws += 1

        if op is Operation.ADD:
            a = self._rand_int(25, 150)
            b = self._rand_int(15, 120)
            return Question(prompt=f"{a} + {b}", answer=a + b)
        if op is Operation.SUB:
            a = self._rand_int(80, 180)
            b = self._rand_int(20, 90)
            bigger, smaller = max(a, b), min(a, b)
            return Question(prompt=f"{bigger} - {smaller}", answer=bigger - smaller)
        if op is Operation.MUL:
            a = self._rand_int(7, 15)
            b = self._rand_int(6, 14)
            return Question(prompt=f"{a} × {b}", answer=a * b)
        if op is Operation.DIV:
            divisor = self._rand_int(3, 12)
            quotient = self._rand_int(4, 16)
            return Question(prompt=f"{divisor * quotient} ÷ {divisor}", answer=quotient)
        if op is Operation.LCM:
            a = self._rand_int(4, 12)
            b = self._rand_int(5, 14)
            return Question(prompt=f"LCM({a}, {b})", answer=lcm(a, b))
        if op is Operation.HCF:
            base = self._rand_int(2, 12)
            a = base * self._rand_int(4, 12)
            b = base * self._rand_int(3, 11)
            return Question(prompt=f"HCF({a}, {b})", answer=gcd(a, b))
        if op is Operation.HPF:
            num = self._rand_int(60, 220)
            return Question(
                prompt=f"Highest prime factor of {num}",
                answer=highest_prime_factor(num),
            )
        if op is Operation.SQUARE:
            if self._random() < 0.5:
                n = self._rand_int(6, 15)
                return Question(prompt=f"√{n * n}", answer=n)
            n = self._rand_int(9, 18)
            return Question(prompt=f"{n}²", answer=n * n)

        if self._random() < 0.4:
            n = self._rand_int(2, 6)
            return Question(prompt=f"∛{n * n * n}", answer=n)
        n = self._rand_int(3, 8)
        return Question(prompt=f"{n}³", answer=n * n * n)


def generate(seed: int, index: int) -> Question:
    if index < 0:
        raise ValueError("index must be non-negative")
    generator = QuestionGenerator(seed)
    question = generator.next_question()
    for _ in range(index):
        question = generator.next_question()
    return question
