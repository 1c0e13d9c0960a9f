"""
Static devotional content: hadith texts grouped into the ten recommendation categories.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Tuple


class Category(str, Enum):
    FRIDAY = "friday"
    FAJR_STRUGGLE = "fajr_struggle"
    ISHA_STRUGGLE = "isha_struggle"
    PRAYER_ABANDONMENT = "prayer_abandonment"
    REPENTANCE = "repentance"
    PRAYER_EXCELLENCE = "prayer_excellence"
    TASBIH_EXCELLENCE = "tasbih_excellence"
    TASBIH_NEGLECT = "tasbih_neglect"
    CONSISTENCY = "consistency"
    GENERAL_MOTIVATION = "general_motivation"


MESSAGES = {
    Category.FRIDAY: "It is Friday, the weekly feast. Here is a hadith to make the most of it:",
    Category.FAJR_STRUGGLE: "Fajr has been hard to wake up for lately. This hadith is for you:",
    Category.ISHA_STRUGGLE: "Isha seems to slip by often these days. Remember this great hadith:",
    Category.PRAYER_ABANDONMENT: "You have been away from prayer for a while. Prayer is your bond with your Creator, read this with your heart:",
    Category.REPENTANCE: "Yesterday was a hard day without prayer, but the door of repentance is always open:",
    Category.PRAYER_EXCELLENCE: "Masha'Allah! Your prayers over the past days have been excellent. Keep to this light:",
    Category.TASBIH_EXCELLENCE: "Your tongue is moist with the remembrance of Allah! Your dhikr today is excellent:",
    Category.TASBIH_NEGLECT: "Your prayers are excellent, but you have not done your dhikr today. This hadith will encourage you:",
    Category.CONSISTENCY: "You are keeping up your prayers well. Remember this hadith about constancy:",
    Category.GENERAL_MOTIVATION: "You are on the right path. Here is today's hadith to strengthen your faith:",
}


@dataclass(frozen=True)
class ContentItem:
    id: str
    text: str
    source: str
    category: Category


CATALOG: Tuple[ContentItem, ...] = (
    ContentItem("f1", "ركعتا الفجر خير من الدنيا وما فيها", "رواه مسلم", Category.FAJR_STRUGGLE),
    ContentItem("f2", "من صلى الصبح فهو في ذمة الله", "رواه مسلم", Category.FAJR_STRUGGLE),
    ContentItem(
        "f3",
        "يعقد الشيطان على قافية رأس أحدكم إذا هو نام ثلاث عقد... فإن استيقظ فذكر الله انحلت عقدة، "
        "فإن توضأ انحلت عقدة، فإن صلى انحلت عقدة كلها، فأصبح نشيطاً طيب النفس.",
        "متفق عليه",
        Category.FAJR_STRUGGLE,
    ),
    ContentItem(
        "i1",
        "من صلى العشاء في جماعة فكأنما قام نصف الليل، ومن صلى الصبح في جماعة فكأنما صلى الليل كله",
        "رواه مسلم",
        Category.ISHA_STRUGGLE,
    ),
    ContentItem(
        "i2",
        "ليس صلاة أثقل على المنافقين من الفجر والعشاء، ولو يعلمون ما فيهما لأتوهما ولو حبوا",
        "متفق عليه",
        Category.ISHA_STRUGGLE,
    ),
    ContentItem("c1", "أحب الأعمال إلى الله أدومها وإن قل", "متفق عليه", Category.CONSISTENCY),
    ContentItem(
        "c2",
        "عليك بكثرة السجود لله، فإنك لا تسجد لله سجدة إلا رفعك الله بها درجة، وحط عنك بها خطيئة",
        "رواه مسلم",
        Category.CONSISTENCY,
    ),
    ContentItem("c3", "استقيموا ولن تحصوا، واعلموا أن خير أعمالكم الصلاة", "رواه ابن ماجه", Category.PRAYER_EXCELLENCE),
    ContentItem("r1", "كل بني آدم خطاء، وخير الخطائين التوابون", "رواه الترمذي", Category.REPENTANCE),
    ContentItem(
        "r2",
        "إن الله عز وجل يبسط يده بالليل ليتوب مسيء النهار، ويبسط يده بالنهار ليتوب مسيء الليل",
        "رواه مسلم",
        Category.REPENTANCE,
    ),
    ContentItem("r3", "التائب من الذنب كمن لا ذنب له", "رواه ابن ماجه", Category.REPENTANCE),
    ContentItem("a1", "العهد الذي بيننا وبينهم الصلاة، فمن تركها فقد كفر", "رواه الترمذي", Category.PRAYER_ABANDONMENT),
    ContentItem("a2", "بين الرجل وبين الشرك والكفر ترك الصلاة", "رواه مسلم", Category.PRAYER_ABANDONMENT),
    ContentItem(
        "fr1",
        "من قرأ سورة الكهف في يوم الجمعة أضاء له من النور ما بين الجمعتين",
        "رواه الحاكم",
        Category.FRIDAY,
    ),
    ContentItem(
        "fr2",
        "خير يوم طلعت عليه الشمس يوم الجمعة، فيه خلق آدم، وفيه أدخل الجنة، وفيه أخرج منها",
        "رواه مسلم",
        Category.FRIDAY,
    ),
    ContentItem("fr3", "إن من أفضل أيامكم يوم الجمعة، فأكثروا علي من الصلاة فيه", "رواه أبو داود", Category.FRIDAY),
    ContentItem(
        "t1",
        "كلمتان خفيفتان على اللسان، ثقيلتان في الميزان، حبيبتان إلى الرحمن: سبحان الله وبحمده، سبحان الله العظيم",
        "متفق عليه",
        Category.TASBIH_EXCELLENCE,
    ),
    ContentItem(
        "t2",
        "ألا أنبئكم بخير أعمالكم، وأزكاها عند مليككم، وأرفعها في درجاتكم... ذكر الله",
        "رواه الترمذي",
        Category.TASBIH_EXCELLENCE,
    ),
    ContentItem("tn1", "مثل الذي يذكر ربه والذي لا يذكر ربه كمثل الحي والميت", "رواه البخاري", Category.TASBIH_NEGLECT),
    ContentItem(
        "g1",
        "الصلوات الخمس والجمعة إلى الجمعة كفارة لما بينهن ما لم تغش الكبائر",
        "رواه مسلم",
        Category.GENERAL_MOTIVATION,
    ),
    ContentItem(
        "g2",
        "تحترقون تحترقون فإذا صليتم الفجر غسلتها، ثم تحترقون تحترقون فإذا صليتم الظهر غسلتها...",
        "رواه الطبراني",
        Category.GENERAL_MOTIVATION,
    ),
    ContentItem(
        "g3",
        "لو يعلم الناس ما في النداء والصف الأول ثم لم يجدوا إلا أن يستهموا عليه لاستهموا",
        "متفق عليه",
        Category.GENERAL_MOTIVATION,
    ),
)


def items_in(category: Category, catalog: Tuple[ContentItem, ...] = CATALOG) -> Tuple[ContentItem, ...]:
    return tuple(item for item in catalog if item.category == category)
