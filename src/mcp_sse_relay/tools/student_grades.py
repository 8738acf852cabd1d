#!/usr/bin/env python3
# src/mcp_sse_relay/tools/student_grades.py
"""
Student grades tool - highest scores over a CSV of class results.

The CSV has the columns 姓名, 语文, 数学, 英语; the total is their sum.
Reads are offloaded to a worker thread so a slow disk never blocks the loop.
"""

import asyncio
import csv
import logging
from dataclasses import dataclass
from pathlib import Path

from ..types import ToolHandler, ToolParameter, text_result

logger = logging.getLogger(__name__)

DEFAULT_STUDENTS_CSV = Path(__file__).resolve().parent.parent / "data" / "students.csv"

QUERY_TYPES = ("total_highest", "chinese_highest", "math_highest", "english_highest", "all_highest")

MSG_UNSUPPORTED = (
    "错误：不支持的查询类型。支持的查询类型：total_highest(总分最高), chinese_highest(语文最高), "
    "math_highest(数学最高), english_highest(英语最高), all_highest(所有最高分)"
)


@dataclass(frozen=True)
class Student:
    name: str
    chinese: int
    math: int
    english: int

    @property
    def total(self) -> int:
        return self.chinese + self.math + self.english


def read_students(path: Path) -> list[Student]:
    """Load every row of the grades CSV."""
    with open(path, encoding="utf-8-sig", newline="") as f:
        return [
            Student(
                name=row["姓名"],
                chinese=int(row["语文"]),
                math=int(row["数学"]),
                english=int(row["英语"]),
            )
            for row in csv.DictReader(f)
        ]


def _top(students: list[Student], attr: str) -> Student:
    # max() keeps the first student on ties
    return max(students, key=lambda s: getattr(s, attr))


def describe_query(students: list[Student], query_type: str) -> str:
    if query_type == "total_highest":
        s = _top(students, "total")
        return f"总分最高的同学是：{s.name}，总分为：{s.total}分（语文：{s.chinese}，数学：{s.math}，英语：{s.english}）"
    if query_type == "chinese_highest":
        s = _top(students, "chinese")
        return f"语文最高分的同学是：{s.name}，语文成绩：{s.chinese}分"
    if query_type == "math_highest":
        s = _top(students, "math")
        return f"数学最高分的同学是：{s.name}，数学成绩：{s.math}分"
    if query_type == "english_highest":
        s = _top(students, "english")
        return f"英语最高分的同学是：{s.name}，英语成绩：{s.english}分"
    if query_type == "all_highest":
        total = _top(students, "total")
        chinese = _top(students, "chinese")
        math = _top(students, "math")
        english = _top(students, "english")
        return (
            "班级成绩统计：\n"
            f"总分最高：{total.name}（{total.total}分）\n"
            f"语文最高：{chinese.name}（{chinese.chinese}分）\n"
            f"数学最高：{math.name}（{math.math}分）\n"
            f"英语最高：{english.name}（{english.english}分）"
        )
    return MSG_UNSUPPORTED


async def query_grades(query_type: str, csv_path: Path = DEFAULT_STUDENTS_CSV) -> dict:
    try:
        students = await asyncio.to_thread(read_students, csv_path)
        if not students:
            raise ValueError("没有学生数据")
        return text_result(describe_query(students, query_type))
    except (OSError, ValueError, KeyError) as e:
        logger.warning(f"Grade query failed: {e}")
        return text_result(f"查询错误：{e}")


def create_tool(csv_path: str | Path | None = None) -> ToolHandler:
    path = Path(csv_path) if csv_path else DEFAULT_STUDENTS_CSV

    async def student_grades(query_type: str) -> dict:
        return await query_grades(query_type, path)

    return ToolHandler.from_function(
        student_grades,
        title="学生成绩查询",
        description="查询学生成绩信息：总分最高、各科最高分等",
        parameters=[
            ToolParameter(
                "query_type",
                "string",
                "查询类型: total_highest(总分最高), chinese_highest(语文最高), math_highest(数学最高), "
                "english_highest(英语最高), all_highest(所有最高分)",
            )
        ],
    )
